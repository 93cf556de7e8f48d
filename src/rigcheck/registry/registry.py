"""
能力标签注册表 - Capability Tag Registry

"名为 X 的类目" → "适用的规格契约与能力标签" 的唯一映射来源。
Single source of truth mapping "a category named X" to the specification
contract and capability tags that apply to it.

The registry is built once and never mutated; pass it into whatever needs it.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from ..schemas import CapabilityTag
from ..specs.types import SpecificationDeclaration
from .profiles import (
    DEFAULT_DETECTION_RULES,
    DEFAULT_PROFILES,
    LEGACY_SLOTS,
    ROLE_IDENTITY_TAGS,
    ComponentProfile,
    DetectionRule,
)

PATTERN_WEIGHT = 0.6
KEYWORD_WEIGHT = 0.1


class ProfileMatch(BaseModel):
    profile_id: str
    confidence: float
    priority: int = 0
    matched_patterns: List[str] = Field(default_factory=list)
    matched_keywords: List[str] = Field(default_factory=list)


class CapabilityRegistry:
    def __init__(
        self,
        profiles: Iterable[ComponentProfile],
        detection_rules: Iterable[DetectionRule] = (),
        legacy_slots: Optional[Dict[str, str]] = None,
    ):
        self._profiles = MappingProxyType({p.id: p for p in profiles})
        self._rules = tuple(r for r in detection_rules if r.profile_id in self._profiles)
        self._legacy_slots = MappingProxyType(dict(legacy_slots or {}))

    def profiles(self) -> List[ComponentProfile]:
        return list(self._profiles.values())

    def get_profile(self, profile_id: str) -> Optional[ComponentProfile]:
        return self._profiles.get(profile_id)

    def get_declarations(self, profile_id: str) -> List[SpecificationDeclaration]:
        profile = self._profiles.get(profile_id)
        return profile.declarations() if profile else []

    def find_declaration(self, profile_id: str, field: str) -> Optional[SpecificationDeclaration]:
        for declaration in self.get_declarations(profile_id):
            if declaration.accepts_name(field):
                return declaration
        return None

    def get_tags(self, profile_id: str) -> List[CapabilityTag]:
        profile = self._profiles.get(profile_id)
        return list(profile.tags) if profile else []

    def detect_profiles(self, category_name: str, description: str = "") -> List[ProfileMatch]:
        """
        识别类目档案 - Detect profiles for a category name

        评分规则 Scoring:
        1. 名称命中任一模式: +0.6
        2. 名称/描述每命中一个关键词: +0.1
        3. 命中排除模式: 直接排除该档案
        置信度 = min(1, 得分) × 规则置信度

        排序 Ordering: confidence desc, then priority, then the more specific
        match (more keywords, then longer keywords), then profile id.
        """
        name = category_name.strip().lower()
        haystack = f"{name} {description.strip().lower()}"
        matches: List[ProfileMatch] = []

        for rule in self._rules:
            profile = self._profiles[rule.profile_id]
            if any(re.match(p, name, re.IGNORECASE) for p in rule.exclude_patterns):
                continue
            patterns = [p for p in profile.category_patterns if re.match(p, name, re.IGNORECASE)]
            keywords = [k for k in rule.keywords if k.lower() in haystack]
            score = (PATTERN_WEIGHT if patterns else 0.0) + KEYWORD_WEIGHT * len(keywords)
            if score <= 0:
                continue
            matches.append(
                ProfileMatch(
                    profile_id=profile.id,
                    confidence=round(min(1.0, score) * rule.confidence, 4),
                    priority=profile.priority,
                    matched_patterns=patterns,
                    matched_keywords=keywords,
                )
            )

        matches.sort(
            key=lambda m: (
                -m.confidence,
                -m.priority,
                -len(m.matched_keywords),
                -sum(len(k) for k in m.matched_keywords),
                m.profile_id,
            )
        )
        return matches

    def profile_for_tags(self, tags: Sequence[CapabilityTag]) -> Optional[ComponentProfile]:
        tag_set = set(tags)
        for tag, profile_id in ROLE_IDENTITY_TAGS:
            if tag in tag_set and profile_id in self._profiles:
                return self._profiles[profile_id]
        return None

    def legacy_profile(self, role_slug: str) -> Optional[ComponentProfile]:
        profile_id = self._legacy_slots.get(role_slug.strip().lower())
        return self._profiles.get(profile_id) if profile_id else None

    def legacy_tags(self, role_slug: str) -> List[CapabilityTag]:
        profile = self.legacy_profile(role_slug)
        return list(profile.tags) if profile else []

    def resolve_profile(
        self,
        role_slug: str,
        tags: Sequence[CapabilityTag] = (),
        title: str = "",
    ) -> Optional[ComponentProfile]:
        """Profile for a role: identity tag first, then the legacy slot, then detection."""
        profile = self.profile_for_tags(tags)
        if profile is not None:
            return profile
        profile = self.legacy_profile(role_slug)
        if profile is not None:
            return profile
        detected = self.detect_profiles(role_slug.replace("-", " "), title)
        return self._profiles[detected[0].profile_id] if detected else None


def build_default_registry() -> CapabilityRegistry:
    return CapabilityRegistry(DEFAULT_PROFILES, DEFAULT_DETECTION_RULES, LEGACY_SLOTS)

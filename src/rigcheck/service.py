from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .builder.aggregate import aggregate_result
from .builder.compatibility import CompatibilityEngine
from .builder.power import DEFAULT_HEADROOM_PERCENT, PowerBudget, calculate_power, validate_supply
from .data.repository import RuleRepository
from .registry.registry import CapabilityRegistry, ProfileMatch
from .schemas import (
    CapabilityTag,
    CompatibilityRule,
    ComponentInstance,
    Issue,
    RawSpecification,
    RawValue,
    RuleKind,
    ValidationResult,
)
from .specs.normalizer import ComponentNormalization, infer_declaration, normalize, normalize_component
from .specs.types import NormalizationResult, SpecificationValue


class ValidationService:
    """配置校验服务

    Fans out the repository reads per role, waits for all of them, then runs
    normalization, the rule engine and the power budget over the results.
    Holds no per-request state, so one instance serves concurrent callers.
    """

    def __init__(
        self,
        repository: RuleRepository,
        registry: CapabilityRegistry,
        *,
        headroom_percent: float = DEFAULT_HEADROOM_PERCENT,
        repository_timeout_seconds: float = 2.0,
    ):
        if headroom_percent < 0:
            raise ValueError("headroom_percent must be >= 0")
        if repository_timeout_seconds <= 0:
            raise ValueError("repository_timeout_seconds must be > 0")
        self.repository = repository
        self.registry = registry
        self.engine = CompatibilityEngine(registry)
        self.headroom_percent = headroom_percent
        self.repository_timeout_seconds = repository_timeout_seconds

    async def _read(self, label: str, fn: Callable[..., Any], *args: Any) -> Tuple[Any, Optional[str]]:
        start = time.time()
        try:
            return await asyncio.wait_for(fn(*args), timeout=self.repository_timeout_seconds), None
        except asyncio.TimeoutError:
            elapsed = time.time() - start
            print(
                f"[PERF] Repository read {label} timed out after {elapsed:.3f}s "
                f"(timeout={self.repository_timeout_seconds}s)"
            )
            return None, f"{label}: timed out"
        except Exception as err:
            print(f"[REPO] Repository read {label} failed: {err}")
            return None, f"{label}: {err}"

    async def _load_rule_data(
        self, roles: List[str]
    ) -> Tuple[Dict[str, List[CapabilityTag]], List[CompatibilityRule], List[str]]:
        tag_reads = [self._read(f"tags[{role}]", self.repository.get_tags_for_role, role) for role in roles]
        rule_reads = [
            self._read(f"rules[{kind.value}]", self.repository.get_rules_by_kind, kind) for kind in RuleKind
        ]
        results = await asyncio.gather(*tag_reads, *rule_reads)

        failures: List[str] = []
        tags_by_role: Dict[str, List[CapabilityTag]] = {}
        for role, (tags, error) in zip(roles, results[: len(roles)]):
            tags_by_role[role] = list(tags or [])
            if error:
                failures.append(error)
        rules: List[CompatibilityRule] = []
        for found, error in results[len(roles):]:
            rules.extend(found or [])
            if error:
                failures.append(error)
        return tags_by_role, rules, failures

    def _normalize_roles(
        self,
        configuration: Mapping[str, ComponentInstance],
        tags_by_role: Mapping[str, List[CapabilityTag]],
    ) -> Tuple[Dict[str, ComponentNormalization], List[Issue]]:
        mode, resolved = self.engine.resolve_tags(configuration, tags_by_role)
        assigned = self.engine.assign_profiles(mode, configuration, resolved)
        normalized: Dict[str, ComponentNormalization] = {}
        findings: List[Issue] = []
        for role in sorted(configuration):
            component = configuration[role]
            profile = assigned.get(role) or self.registry.resolve_profile(
                role, resolved.get(role, []), component.title
            )
            declarations = profile.declarations() if profile else []
            result = normalize_component(component.specifications, declarations)
            normalized[role] = result
            for failure in result.failures():
                findings.append(
                    Issue(
                        kind="error",
                        role_a=role,
                        message=f"Invalid value for {failure.field}",
                        details="; ".join(failure.errors),
                        severity="medium",
                        field=failure.field,
                        suggestions=failure.suggestions,
                    )
                )
            for note in result.notes():
                for warning in note.warnings:
                    findings.append(
                        Issue(
                            kind="warning",
                            role_a=role,
                            message=warning,
                            severity="medium",
                            field=note.field,
                        )
                    )
        return normalized, findings

    async def validate_configuration(
        self, configuration: Mapping[str, ComponentInstance]
    ) -> ValidationResult:
        """校验一套配置；仓库与评估中的任何异常都被转换为提示，不会向上抛出"""
        roles = sorted(configuration)
        tags_by_role, rules, failures = await self._load_rule_data(roles)

        findings: List[Issue] = []
        if failures:
            findings.append(
                Issue(
                    kind="warning",
                    role_a="rules",
                    message="Compatibility rules unavailable",
                    details="; ".join(failures),
                    severity="medium",
                )
            )

        mode, resolved = self.engine.resolve_tags(configuration, tags_by_role)
        normalized: Dict[str, ComponentNormalization] = {}
        try:
            normalized, input_findings = self._normalize_roles(configuration, tags_by_role)
            findings.extend(input_findings)
            issues, warnings = self.engine.evaluate(configuration, normalized, tags_by_role, rules)
            findings.extend(issues)
            findings.extend(warnings)
        except Exception as err:
            print(f"[RigCheck] Evaluation failed, returning partial result: {err!r}")
            findings.append(
                Issue(
                    kind="warning",
                    role_a="system",
                    message="Validation could not complete",
                    details=str(err),
                    severity="medium",
                )
            )

        # the power budget only needs normalized values, so it runs even when the engine failed
        power = PowerBudget()
        try:
            power = calculate_power(
                normalized,
                resolved,
                titles={role: c.title for role, c in configuration.items()},
                headroom_percent=self.headroom_percent,
            )
            findings.extend(validate_supply(power, normalized, resolved))
        except Exception as err:
            print(f"[RigCheck] Power budget failed: {err!r}")
            power = PowerBudget()
            findings.append(
                Issue(
                    kind="warning",
                    role_a="power",
                    message="Power budget could not complete",
                    details=str(err),
                    severity="medium",
                )
            )

        # errors first, keeping each group's pipeline order
        ordered = [f for f in findings if f.kind == "error"] + [f for f in findings if f.kind == "warning"]
        return aggregate_result(ordered, power=power, evaluation_mode=mode)

    def validate_configuration_sync(
        self, configuration: Mapping[str, ComponentInstance]
    ) -> ValidationResult:
        return asyncio.run(self.validate_configuration(configuration))

    def normalize_field(
        self,
        raw_value: RawValue,
        profile_id: str,
        field: str,
        context: Optional[Mapping[str, RawValue]] = None,
    ) -> NormalizationResult:
        profile = self.registry.get_profile(profile_id)
        if profile is None:
            return NormalizationResult(
                field=field,
                raw_value=raw_value,
                errors=[f"Unknown profile '{profile_id}'"],
                suggestions=[p.id for p in self.registry.profiles()],
            )
        declaration = self.registry.find_declaration(profile_id, field) or infer_declaration(
            field, raw_value
        )

        context_values: Dict[str, SpecificationValue] = {}
        if context:
            siblings = [RawSpecification(name=k, raw_value=v) for k, v in context.items()]
            context_values = normalize_component(
                siblings, [d for d in profile.declarations() if d.name != declaration.name]
            ).values
        return normalize(raw_value, declaration, context_values)

    def detect_profiles(self, category_name: str, description: str = "") -> List[ProfileMatch]:
        return self.registry.detect_profiles(category_name, description)

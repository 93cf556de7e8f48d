"""Registry 模块：组件档案与能力标签注册表"""

from .profiles import ComponentProfile, DetectionRule, DEFAULT_PROFILES, ROLE_IDENTITY_TAGS
from .registry import CapabilityRegistry, ProfileMatch, build_default_registry

__all__ = [
    "ComponentProfile",
    "DetectionRule",
    "DEFAULT_PROFILES",
    "ROLE_IDENTITY_TAGS",
    "CapabilityRegistry",
    "ProfileMatch",
    "build_default_registry",
]

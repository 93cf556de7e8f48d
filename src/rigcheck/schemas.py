from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CapabilityTag(str, Enum):
    """What a component does, independent of how its category is named."""

    POWER_CONSUMER = "power_consumer"
    POWER_PROVIDER = "power_provider"
    REQUIRES_SOCKET = "requires_socket"
    HAS_SOCKET = "has_socket"
    REQUIRES_SLOT = "requires_slot"
    HAS_SLOTS = "has_slots"
    GRAPHICS_ACCELERATED = "graphics_accelerated"
    GENERATES_HEAT = "generates_heat"
    PROVIDES_COOLING = "provides_cooling"
    REQUIRES_COOLING = "requires_cooling"
    VOLATILE_MEMORY = "volatile_memory"
    PERSISTENT_STORAGE = "persistent_storage"
    HAS_FORM_FACTOR = "has_form_factor"
    REQUIRES_FORM_FACTOR = "requires_form_factor"
    HOUSES_COMPONENTS = "houses_components"
    HAS_PORTS = "has_ports"
    REQUIRES_PORTS = "requires_ports"
    MODULAR = "modular"
    OVERCLOCKABLE = "overclockable"


class RuleKind(str, Enum):
    EXACT_MATCH = "exact_match"
    COMPATIBLE_VALUES = "compatible_values"
    RANGE_CHECK = "range_check"


class RuleSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


IssueKind = Literal["error", "warning"]
IssueSeverity = Literal["low", "medium", "high", "critical"]
EvaluationMode = Literal["tagged", "legacy"]
RawValue = Union[bool, int, float, str, None]


class CompatibilityRule(BaseModel):
    """Externally authored relation between two roles.

    Roles are addressed by capability tag; ``primary_category`` and
    ``secondary_category`` are only consulted in legacy fixed-slot mode.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    kind: RuleKind
    severity: RuleSeverity = RuleSeverity.ERROR
    primary_tag: Optional[CapabilityTag] = None
    secondary_tag: Optional[CapabilityTag] = None
    primary_category: Optional[str] = None
    secondary_category: Optional[str] = None
    primary_field: str
    secondary_field: str


class RawSpecification(BaseModel):
    name: str
    raw_value: RawValue = None


class ComponentInstance(BaseModel):
    id: str
    title: str = ""
    specifications: List[RawSpecification] = Field(default_factory=list)


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: IssueKind
    role_a: str
    role_b: str = ""
    message: str
    details: str = ""
    severity: IssueSeverity = "medium"
    field: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    rule_id: Optional[str] = None


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    issues: List[Issue] = Field(default_factory=list)
    warnings: List[Issue] = Field(default_factory=list)
    actual_power_consumption: int = 0
    recommended_psu_power: int = 0
    evaluation_mode: EvaluationMode = "tagged"


class ValidationRequest(BaseModel):
    configuration: Dict[str, ComponentInstance]


class NormalizeRequest(BaseModel):
    raw_value: RawValue = None
    profile_id: str
    field: str
    context: Dict[str, RawValue] = Field(default_factory=dict)


class DetectProfilesRequest(BaseModel):
    category_name: str
    description: str = ""

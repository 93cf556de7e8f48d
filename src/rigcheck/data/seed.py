"""默认种子数据：类目能力标签与外部编写的兼容性规则"""

from __future__ import annotations

from typing import Dict, List, Tuple

from ..schemas import CapabilityTag, CompatibilityRule, RuleKind, RuleSeverity

T = CapabilityTag

DEFAULT_CATEGORY_TAGS: Dict[str, Tuple[CapabilityTag, ...]] = {
    "processors": (
        T.POWER_CONSUMER,
        T.REQUIRES_SOCKET,
        T.GENERATES_HEAT,
        T.REQUIRES_COOLING,
        T.OVERCLOCKABLE,
    ),
    "motherboards": (
        T.POWER_CONSUMER,
        T.HAS_SOCKET,
        T.HAS_SLOTS,
        T.HAS_PORTS,
        T.HAS_FORM_FACTOR,
        T.REQUIRES_FORM_FACTOR,
    ),
    "memory": (T.POWER_CONSUMER, T.REQUIRES_SLOT, T.VOLATILE_MEMORY, T.OVERCLOCKABLE),
    "graphics-cards": (
        T.POWER_CONSUMER,
        T.REQUIRES_SLOT,
        T.GRAPHICS_ACCELERATED,
        T.GENERATES_HEAT,
        T.REQUIRES_COOLING,
    ),
    "storage": (T.POWER_CONSUMER, T.PERSISTENT_STORAGE, T.REQUIRES_PORTS),
    "power-supplies": (T.POWER_PROVIDER, T.HAS_FORM_FACTOR, T.MODULAR),
    "cases": (T.HOUSES_COMPONENTS, T.HAS_FORM_FACTOR),
    "cooling": (T.PROVIDES_COOLING, T.POWER_CONSUMER),
}

DEFAULT_RULES: List[CompatibilityRule] = [
    CompatibilityRule(
        id="cpu-motherboard-socket",
        name="CPU Socket Compatibility",
        description="CPU requires a motherboard with the same socket",
        kind=RuleKind.EXACT_MATCH,
        severity=RuleSeverity.ERROR,
        primary_tag=T.REQUIRES_SOCKET,
        secondary_tag=T.HAS_SOCKET,
        primary_category="processors",
        secondary_category="motherboards",
        primary_field="socket",
        secondary_field="socket",
    ),
    CompatibilityRule(
        id="cooler-height-case-clearance",
        name="Cooler Height Clearance",
        description="Cooler must be no taller than the case allows",
        kind=RuleKind.RANGE_CHECK,
        severity=RuleSeverity.ERROR,
        primary_tag=T.PROVIDES_COOLING,
        secondary_tag=T.HOUSES_COMPONENTS,
        primary_category="cooling",
        secondary_category="cases",
        primary_field="height",
        secondary_field="max_cooler_height",
    ),
    CompatibilityRule(
        id="memory-modules-motherboard-slots",
        name="Memory Slot Compatibility",
        description="Memory kit must not need more slots than the motherboard has",
        kind=RuleKind.RANGE_CHECK,
        severity=RuleSeverity.ERROR,
        primary_tag=T.VOLATILE_MEMORY,
        secondary_tag=T.HAS_SOCKET,
        primary_category="memory",
        secondary_category="motherboards",
        primary_field="modules",
        secondary_field="memory_slots",
    ),
    CompatibilityRule(
        id="psu-form-factor-case-support",
        name="PSU Form Factor Support",
        description="Case should accept the power supply form factor",
        kind=RuleKind.COMPATIBLE_VALUES,
        severity=RuleSeverity.WARNING,
        primary_tag=T.POWER_PROVIDER,
        secondary_tag=T.HOUSES_COMPONENTS,
        primary_category="power-supplies",
        secondary_category="cases",
        primary_field="form_factor",
        secondary_field="supported_psu_form_factors",
    ),
]

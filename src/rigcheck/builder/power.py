"""
功耗预算模块 - Power Budget Module

计算整机实际功耗与推荐电源功率，并校验所选电源。
Compute actual system draw and the recommended supply rating, then check the
selected power supply against them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Mapping, Optional, Sequence

from ..registry.profiles import ROLE_IDENTITY_TAGS
from ..schemas import CapabilityTag, Issue
from ..specs.normalizer import ComponentNormalization
from ..specs.types import MemoryType

PowerSource = Literal["gpu_recommendation", "component_sum", "none"]


@dataclass
class PowerBudget:
    """
    功耗预算结果 - Power Budget Result

    字段说明 Field Descriptions:
    - actual_consumption: 各组件功耗之和（W）
    - recommended_psu_power: 推荐电源功率（W），0 表示数据不足
    - source: 推荐值来源（显卡厂商推荐 / 组件求和 / 无）
    - breakdown: 每个角色的功耗估算
    - unestimated: 数据不足、未计入功耗的角色
    """

    actual_consumption: int = 0
    recommended_psu_power: int = 0
    source: PowerSource = "none"
    breakdown: Dict[str, int] = field(default_factory=dict)
    unestimated: List[str] = field(default_factory=list)


# 固定估算值（W）- Fixed per-unit estimates in watts
MOTHERBOARD_BASELINE = 30
CASE_FANS_BASELINE = 10
MEMORY_MODULE_WATTS = {
    MemoryType.DDR4: 3,
    MemoryType.DDR5: 5,
}
STORAGE_WATTS = {
    "nvme": 7,
    "sata_ssd": 4,
    "hdd": 9,
}
COOLER_WATTS = {
    "air": 5,
    "liquid": 15,
}
DEFAULT_HEADROOM_PERCENT = 20

LOAD_UNSAFE = 0.9
LOAD_HIGH = 0.8
LOAD_LOW = 0.5
MODULAR_ADVISORY_WATTS = 650

_LIQUID_KEYWORDS = ("liquid", "aio", "water")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_liquid_cooler(cooler_type: Optional[str], title: str = "") -> bool:
    """散热器是否为水冷；未声明类型时按标题关键词判断"""
    if cooler_type:
        return cooler_type.strip().lower() == "liquid"
    lowered = title.lower()
    return any(k in lowered for k in _LIQUID_KEYWORDS)


def _role_kind(tags: Sequence[CapabilityTag]) -> Optional[str]:
    tag_set = set(tags)
    for tag, profile_id in ROLE_IDENTITY_TAGS:
        if tag in tag_set:
            return profile_id
    return None


def _storage_class(normalized: ComponentNormalization) -> Optional[str]:
    """接口优先，其次类型；无法判断时返回 None"""
    storage_type = normalized.get("storage_type")
    interface = normalized.get("interface")
    type_text = storage_type.value.lower() if storage_type else ""
    interface_text = interface.value.lower() if interface else ""
    if interface_text in {"nvme", "pcie"}:
        return "nvme"
    if interface_text.startswith("sata"):
        return "hdd" if type_text == "hdd" else "sata_ssd"
    # an M.2 slot or no interface at all says nothing about the protocol
    if "nvme" in type_text:
        return "nvme"
    if type_text == "hdd":
        return "hdd"
    if type_text == "ssd":
        return "sata_ssd"
    return None


def _role_draw(
    kind: str,
    normalized: ComponentNormalization,
    title: str,
) -> int:
    if kind == "cpu":
        return round_half_up(normalized.number("tdp") or 0)
    if kind == "gpu":
        return round_half_up(normalized.number("power_consumption") or 0)
    if kind == "ram":
        memory_type = normalized.get("memory_type")
        per_module = MEMORY_MODULE_WATTS.get(
            memory_type.value if memory_type else MemoryType.DDR4, MEMORY_MODULE_WATTS[MemoryType.DDR4]
        )
        modules = int(normalized.number("modules") or 1)
        return per_module * modules
    if kind == "storage":
        storage_class = _storage_class(normalized)
        return STORAGE_WATTS[storage_class] if storage_class else 0
    if kind == "cooler":
        cooler_type = normalized.get("cooler_type")
        liquid = is_liquid_cooler(cooler_type.value if cooler_type else None, title)
        return COOLER_WATTS["liquid" if liquid else "air"]
    return 0


_CONSUMER_KINDS = {"cpu", "gpu", "ram", "storage", "cooler", "motherboard"}


def calculate_power(
    normalized_by_role: Mapping[str, ComponentNormalization],
    tags_by_role: Mapping[str, Sequence[CapabilityTag]],
    titles: Optional[Mapping[str, str]] = None,
    headroom_percent: float = DEFAULT_HEADROOM_PERCENT,
) -> PowerBudget:
    """
    计算功耗预算 - Calculate Power Budget

    优先级 Precedence:
    1. 显卡声明了厂商推荐电源功率：直接取该值（四舍五入），不再加余量
       A GPU's declared recommended_psu_power alone becomes the recommendation,
       rounded to the nearest watt, with no headroom on top.
    2. 否则：按组件求和，推荐值 = 实际功耗 × (1 + 余量%)
       Otherwise sum every consumer and add the headroom percentage.
    3. 没有显卡推荐值也没有任何耗电组件：两者均为 0（数据不足）
       With neither, both figures are 0, meaning "insufficient data".

    参数 Parameters:
        normalized_by_role: 每个角色的归一化规格
                            Normalized specifications per role
        tags_by_role: 每个角色的能力标签（已解析，含旧版模式）
                      Resolved capability tags per role
        titles: 组件标题，用于推断散热器类型
                Component titles, used to infer the cooler type
        headroom_percent: 组件求和路径上的余量百分比
                          Headroom added on the component-sum path
    """
    titles = titles or {}
    breakdown: Dict[str, int] = {}
    gpu_recommendations: List[float] = []
    unestimated: List[str] = []
    has_consumer = False
    has_case = False

    for role in sorted(normalized_by_role):
        kind = _role_kind(tags_by_role.get(role, []))
        if kind is None:
            continue
        normalized = normalized_by_role[role]
        if kind == "case":
            has_case = True
            continue
        if kind not in _CONSUMER_KINDS:
            continue
        has_consumer = True
        if kind == "gpu":
            recommended = normalized.number("recommended_psu_power")
            if recommended:
                gpu_recommendations.append(recommended)
        if kind == "storage" and _storage_class(normalized) is None:
            unestimated.append(role)
        draw = _role_draw(kind, normalized, titles.get(role, ""))
        if draw:
            breakdown[role] = draw

    if not has_consumer:
        return PowerBudget()

    breakdown["motherboard_baseline"] = MOTHERBOARD_BASELINE
    if has_case:
        breakdown["case_fans"] = CASE_FANS_BASELINE
    actual = sum(breakdown.values())

    if gpu_recommendations:
        return PowerBudget(
            actual_consumption=actual,
            recommended_psu_power=round_half_up(max(gpu_recommendations)),
            source="gpu_recommendation",
            breakdown=breakdown,
            unestimated=unestimated,
        )
    return PowerBudget(
        actual_consumption=actual,
        recommended_psu_power=round_half_up(actual * (1 + headroom_percent / 100)),
        source="component_sum",
        breakdown=breakdown,
        unestimated=unestimated,
    )


def validate_supply(
    budget: PowerBudget,
    normalized_by_role: Mapping[str, ComponentNormalization],
    tags_by_role: Mapping[str, Sequence[CapabilityTag]],
) -> List[Issue]:
    """
    校验电源 - Validate the selected power supply

    返回 Returns:
        问题列表（错误与提示混合，按检查顺序）
        Findings (errors and warnings mixed, in check order)
    """
    findings: List[Issue] = []
    for role in budget.unestimated:
        findings.append(
            Issue(
                kind="warning",
                role_a=role,
                message="Insufficient information for storage power estimate",
                details=f"{role} declares neither a storage interface nor a recognizable drive type; "
                "its draw is not counted.",
                severity="low",
                field="interface",
            )
        )
    psus = [
        role
        for role in sorted(normalized_by_role)
        if _role_kind(tags_by_role.get(role, [])) == "psu"
    ]

    if not psus:
        if budget.source == "gpu_recommendation":
            gpu = next(
                (r for r in sorted(normalized_by_role) if _role_kind(tags_by_role.get(r, [])) == "gpu"),
                "",
            )
            findings.append(
                Issue(
                    kind="error",
                    role_a="power",
                    role_b=gpu,
                    message="Power supply required for graphics card",
                    details=f"The graphics card requires a {budget.recommended_psu_power} W power supply.",
                    severity="high",
                    field="wattage",
                )
            )
        return findings

    for psu in psus:
        normalized = normalized_by_role[psu]
        wattage = normalized.number("wattage")
        if wattage is None:
            findings.append(
                Issue(
                    kind="warning",
                    role_a=psu,
                    message="Insufficient information for PSU wattage check",
                    details=f"{psu} does not declare 'wattage'; the check could not run.",
                    severity="low",
                    field="wattage",
                )
            )
        elif budget.recommended_psu_power and wattage < budget.recommended_psu_power:
            findings.append(
                Issue(
                    kind="error",
                    role_a=psu,
                    message="PSU wattage insufficient",
                    details=(
                        f"PSU provides {wattage:g} W but {budget.recommended_psu_power} W "
                        "is recommended."
                    ),
                    severity="critical",
                    field="wattage",
                )
            )
        elif budget.actual_consumption and wattage > 0:
            findings.extend(_load_findings(psu, budget.actual_consumption / wattage))

        # an invalid rating is already reported as an input error
        if normalized.get("efficiency_rating") is None and not normalized.provided("efficiency_rating"):
            findings.append(
                Issue(
                    kind="warning",
                    role_a=psu,
                    message="PSU has no efficiency certification",
                    details="An 80 PLUS certified unit wastes less power as heat.",
                    severity="low",
                    field="efficiency_rating",
                )
            )

        modular = normalized.get("modular")
        if budget.recommended_psu_power >= MODULAR_ADVISORY_WATTS and not (modular and modular.value):
            findings.append(
                Issue(
                    kind="warning",
                    role_a=psu,
                    message="Consider a modular PSU",
                    details=(
                        f"Builds needing {budget.recommended_psu_power} W or more are easier "
                        "to cable with a modular supply."
                    ),
                    severity="low",
                    field="modular",
                )
            )
    return findings


def _load_findings(psu: str, load: float) -> List[Issue]:
    percent = f"{load * 100:.0f}%"
    if load > LOAD_UNSAFE:
        return [
            Issue(
                kind="error",
                role_a=psu,
                message="PSU operating above safe load",
                details=f"Estimated load is {percent} of the PSU rating.",
                severity="high",
                field="wattage",
            )
        ]
    if load > LOAD_HIGH:
        return [
            Issue(
                kind="warning",
                role_a=psu,
                message="PSU operating above its efficiency sweet spot",
                details=f"Estimated load is {percent}; 50-80% is most efficient.",
                severity="medium",
                field="wattage",
            )
        ]
    if load < LOAD_LOW:
        return [
            Issue(
                kind="warning",
                role_a=psu,
                message="PSU is oversized for this build",
                details=f"Estimated load is {percent}; below 50% the PSU runs less efficiently.",
                severity="low",
                field="wattage",
            )
        ]
    return []

"""
兼容性规则引擎 - Compatibility Rule Engine

对一套配置（每个角色一个组件）按固定顺序执行规则：
Evaluates a configuration (one component per role) as an ordered pipeline:

1. Socket / chipset / memory matrix
2. Physical and thermal constraints
3. Slot and connector constraints
4. Externally authored rules (generic exact / list / range comparisons)

角色由能力标签识别；若所有角色都没有标签，则进入旧版固定槽位模式，按类目 slug 识别。
Roles are identified by capability tag. When no role carries any tag the engine
runs in legacy fixed-slot mode and identifies roles by category slug instead;
both modes produce the same result shape.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..registry.profiles import ComponentProfile
from ..registry.registry import CapabilityRegistry
from ..schemas import (
    CapabilityTag,
    CompatibilityRule,
    ComponentInstance,
    EvaluationMode,
    Issue,
    IssueSeverity,
    RuleKind,
    RuleSeverity,
)
from ..specs.normalizer import ComponentNormalization
from ..specs.reference import (
    canonical_generation,
    canonical_socket,
    chipset_family,
    extract_cpu_generation,
    max_memory_speed,
    supported_memory_types,
)
from ..specs.types import SocketType, TextValue
from .power import is_liquid_cooler

GPU_TIGHT_FIT_RATIO = 0.9
AIR_COOLER_MARGIN = 0.8
LIQUID_COOLER_MARGIN = 0.9
AIR_COOLER_TDP_ADVISORY = 125
GPU_CONNECTOR_THRESHOLD = 150
GPU_AIRFLOW_THRESHOLD = 200
SYSTEM_HEAT_ADVISORY = 300

# Field pairs already checked by the built-in pipeline; authored rules over
# the same pair are skipped.
BUILTIN_FIELD_PAIRS = frozenset(
    {
        ("socket", "socket"),
        ("memory_type", "memory_type"),
        ("memory_speed", "chipset"),
        ("memory_size", "max_memory"),
        ("form_factor", "supported_form_factors"),
        ("length", "max_gpu_length"),
        ("socket", "supported_sockets"),
        ("tdp", "tdp_rating"),
        ("power_consumption", "pcie_connectors"),
        ("generation", "chipset"),
    }
)

RULE_SEVERITY_MAP: Dict[RuleSeverity, Tuple[str, IssueSeverity]] = {
    RuleSeverity.ERROR: ("error", "high"),
    RuleSeverity.WARNING: ("warning", "medium"),
    RuleSeverity.INFO: ("warning", "low"),
}

_LIST_SPLIT = re.compile(r"\s*[,;|/]\s*")


def _split_list(text: str) -> List[str]:
    return [item for item in _LIST_SPLIT.split(text.strip()) if item]


def _token(value: str) -> str:
    return re.sub(r"[\s_\-]", "", value).lower()


_FORM_FACTOR_ALIASES = {"matx": "microatx", "uatx": "microatx", "itx": "miniitx"}


def _form_factor_key(value: str) -> str:
    key = _token(value)
    return _FORM_FACTOR_ALIASES.get(key, key)


def _show(value) -> str:
    raw = value.value
    if isinstance(raw, Enum):
        text = raw.value
    elif isinstance(raw, float):
        text = str(int(raw)) if raw.is_integer() else f"{raw:g}"
    else:
        text = str(raw)
    unit = getattr(value, "unit", "")
    return f"{text} {unit}" if unit else text


def _comparable(value):
    raw = value.value
    if isinstance(raw, Enum):
        return _token(raw.value)
    if isinstance(raw, str):
        return _token(raw)
    return raw


@dataclass
class _Evaluation:
    configuration: Mapping[str, ComponentInstance]
    normalized: Mapping[str, ComponentNormalization]
    tags: Mapping[str, Sequence[CapabilityTag]]
    profiles: Mapping[str, Optional[ComponentProfile]]
    mode: EvaluationMode
    findings: List[Issue] = field(default_factory=list)

    def roles(self, profile_id: str) -> List[str]:
        return [
            role
            for role in sorted(self.configuration)
            if self.profiles.get(role) is not None and self.profiles[role].id == profile_id
        ]

    def value(self, role: str, name: str):
        normalized = self.normalized.get(role)
        if normalized is None:
            return None
        found = normalized.get(name)
        if found is not None:
            return found
        profile = self.profiles.get(role)
        if profile is None:
            return None
        for declaration in profile.declarations():
            if declaration.accepts_name(name):
                return normalized.get(declaration.name)
        return None

    def number(self, role: str, name: str) -> Optional[float]:
        found = self.value(role, name)
        if found is None or isinstance(found.value, (bool, str, Enum)):
            return None
        return float(found.value)

    def text(self, role: str, name: str) -> Optional[str]:
        found = self.value(role, name)
        if found is None:
            return None
        raw = found.value
        return raw.value if isinstance(raw, Enum) else str(raw)

    def title(self, role: str) -> str:
        component = self.configuration.get(role)
        return component.title if component else ""

    def add(
        self,
        kind: str,
        role_a: str,
        role_b: str,
        message: str,
        details: str = "",
        severity: IssueSeverity = "medium",
        field_name: Optional[str] = None,
        rule_id: Optional[str] = None,
    ) -> None:
        self.findings.append(
            Issue(
                kind=kind,
                role_a=role_a,
                role_b=role_b,
                message=message,
                details=details,
                severity=severity,
                field=field_name,
                rule_id=rule_id,
            )
        )

    def insufficient(
        self, role_a: str, role_b: str, missing_role: str, field_name: str, check: str
    ) -> None:
        self.add(
            "warning",
            role_a,
            role_b,
            f"Insufficient information for {check} check",
            details=f"{missing_role} does not declare '{field_name}'; the check could not run.",
            severity="low",
            field_name=field_name,
        )


class CompatibilityEngine:
    def __init__(self, registry: CapabilityRegistry):
        self.registry = registry

    def resolve_tags(
        self,
        configuration: Mapping[str, ComponentInstance],
        tags_by_role: Mapping[str, Sequence[CapabilityTag]],
    ) -> Tuple[EvaluationMode, Dict[str, List[CapabilityTag]]]:
        """Tagged mode when any role has tags; otherwise legacy tags by slug."""
        resolved = {role: list(tags_by_role.get(role, [])) for role in configuration}
        if any(resolved.values()):
            return "tagged", resolved
        return "legacy", {role: self.registry.legacy_tags(role) for role in configuration}

    def assign_profiles(
        self,
        mode: EvaluationMode,
        configuration: Mapping[str, ComponentInstance],
        tags_by_role: Mapping[str, Sequence[CapabilityTag]],
    ) -> Dict[str, Optional[ComponentProfile]]:
        if mode == "legacy":
            return {role: self.registry.legacy_profile(role) for role in configuration}
        return {
            role: self.registry.profile_for_tags(tags_by_role.get(role, []))
            for role in configuration
        }

    def evaluate(
        self,
        configuration: Mapping[str, ComponentInstance],
        normalized_by_role: Mapping[str, ComponentNormalization],
        tags_by_role: Mapping[str, Sequence[CapabilityTag]],
        rules: Sequence[CompatibilityRule] = (),
    ) -> Tuple[List[Issue], List[Issue]]:
        """
        执行兼容性评估 - Evaluate a configuration

        返回 Returns:
            (issues, warnings): blocking findings and advisory findings, each in
            pipeline order.
        """
        mode, tags = self.resolve_tags(configuration, tags_by_role)
        ev = _Evaluation(
            configuration=configuration,
            normalized=normalized_by_role,
            tags=tags,
            profiles=self.assign_profiles(mode, configuration, tags),
            mode=mode,
        )

        self._check_socket_matrix(ev)
        self._check_memory(ev)
        self._check_form_factor(ev)
        self._check_gpu_fit(ev)
        self._check_cooling(ev)
        self._check_system_heat(ev)
        self._check_slots_and_connectors(ev)
        self._apply_rules(ev, rules)

        issues = [f for f in ev.findings if f.kind == "error"]
        warnings = [f for f in ev.findings if f.kind == "warning"]
        return issues, warnings

    # 1. Socket / chipset / memory matrix

    def _cpu_generation(self, ev: _Evaluation, cpu: str, socket: SocketType) -> Optional[str]:
        declared = ev.text(cpu, "generation")
        generation = canonical_generation(declared, socket) if declared else None
        return generation or extract_cpu_generation(ev.title(cpu), socket)

    def _check_socket_matrix(self, ev: _Evaluation) -> None:
        for cpu in ev.roles("cpu"):
            for board in ev.roles("motherboard"):
                cpu_socket = ev.value(cpu, "socket")
                board_socket = ev.value(board, "socket")
                if cpu_socket is None or board_socket is None:
                    missing = cpu if cpu_socket is None else board
                    ev.insufficient(cpu, board, missing, "socket", "CPU socket")
                    continue
                if cpu_socket != board_socket:
                    ev.add(
                        "error",
                        cpu,
                        board,
                        f"CPU socket {_show(cpu_socket)} does not match "
                        f"motherboard socket {_show(board_socket)}",
                        details="The CPU cannot be installed on this motherboard.",
                        severity="high",
                        field_name="socket",
                    )
                    continue
                self._check_chipset_generation(ev, cpu, board, cpu_socket.value)

    def _check_chipset_generation(
        self, ev: _Evaluation, cpu: str, board: str, socket: SocketType
    ) -> None:
        chipset = ev.value(board, "chipset")
        if chipset is None:
            ev.insufficient(cpu, board, board, "chipset", "chipset generation")
            return
        family = chipset_family(chipset.value)
        if family is None:
            return
        generation = self._cpu_generation(ev, cpu, socket)
        if generation is None:
            ev.insufficient(cpu, board, cpu, "generation", "chipset generation")
            return
        if generation in family.generations:
            return
        supported = ", ".join(sorted(family.generations))
        if family.strict:
            ev.add(
                "error",
                cpu,
                board,
                f"{family.name} chipset {chipset.value.value} does not support "
                f"{generation} CPUs",
                details=f"Supported generations: {supported}.",
                severity="high",
                field_name="chipset",
            )
        else:
            ev.add(
                "warning",
                cpu,
                board,
                f"{generation} CPU may not be fully supported by {chipset.value.value}",
                details=f"Supported generations: {supported}. A BIOS update may be required.",
                severity="medium",
                field_name="chipset",
            )

    def _check_memory(self, ev: _Evaluation) -> None:
        cpus = ev.roles("cpu")
        boards = ev.roles("motherboard")
        for memory in ev.roles("ram"):
            memory_type = ev.value(memory, "memory_type")
            for board in boards:
                self._check_memory_type_on_board(ev, memory, board, memory_type, cpus)
                self._check_memory_speed(ev, memory, board, memory_type)
                self._check_memory_capacity(ev, memory, board)
            if not boards:
                for cpu in cpus:
                    self._check_memory_type_on_socket(ev, memory, cpu, memory_type, cpu)

    def _check_memory_type_on_board(self, ev, memory, board, memory_type, cpus) -> None:
        if memory_type is None:
            ev.insufficient(memory, board, memory, "memory_type", "memory type")
            return
        board_type = ev.value(board, "memory_type")
        if board_type is not None:
            if board_type.value != memory_type.value:
                ev.add(
                    "error",
                    memory,
                    board,
                    f"Motherboard supports {board_type.value.value} "
                    f"but memory is {memory_type.value.value}",
                    severity="high",
                    field_name="memory_type",
                )
            return
        socket_source = board if ev.value(board, "socket") is not None else next(
            (cpu for cpu in cpus if ev.value(cpu, "socket") is not None), board
        )
        self._check_memory_type_on_socket(ev, memory, board, memory_type, socket_source)

    def _check_memory_type_on_socket(self, ev, memory, other, memory_type, socket_role) -> None:
        if memory_type is None:
            ev.insufficient(memory, other, memory, "memory_type", "memory type")
            return
        socket = ev.value(socket_role, "socket")
        if socket is None:
            ev.insufficient(memory, other, socket_role, "socket", "memory type")
            return
        compatible = supported_memory_types(socket.value)
        if memory_type.value not in compatible:
            ev.add(
                "error",
                memory,
                other,
                f"{memory_type.value.value} memory is not supported by socket {socket.value.value}",
                details=f"Supported types: {', '.join(m.value for m in compatible)}.",
                severity="high",
                field_name="memory_type",
            )

    def _check_memory_speed(self, ev, memory, board, memory_type) -> None:
        speed = ev.number(memory, "memory_speed")
        chipset = ev.value(board, "chipset")
        effective_type = memory_type or ev.value(board, "memory_type")
        if speed is None:
            ev.insufficient(memory, board, memory, "memory_speed", "memory speed")
            return
        if chipset is None:
            ev.insufficient(memory, board, board, "chipset", "memory speed")
            return
        if effective_type is None:
            return
        ceiling = max_memory_speed(chipset.value, effective_type.value)
        if speed > ceiling:
            ev.add(
                "warning",
                memory,
                board,
                "Memory speed may not be fully supported",
                details=(
                    f"Memory speed {int(speed)} MHz exceeds the {chipset.value.value} maximum of "
                    f"{ceiling} MHz for {effective_type.value.value}. Memory will run at reduced speed."
                ),
                severity="medium",
                field_name="memory_speed",
            )

    def _check_memory_capacity(self, ev, memory, board) -> None:
        capacity = ev.number(memory, "memory_size")
        limit = ev.number(board, "max_memory")
        if capacity is None or limit is None:
            missing, name = (memory, "memory_size") if capacity is None else (board, "max_memory")
            ev.insufficient(memory, board, missing, name, "memory capacity")
            return
        if capacity > limit:
            ev.add(
                "warning",
                memory,
                board,
                "Memory capacity exceeds motherboard limit",
                details=f"Memory capacity {capacity:g} GB exceeds motherboard maximum of {limit:g} GB.",
                severity="medium",
                field_name="memory_size",
            )

    # 2. Physical and thermal constraints

    def _check_form_factor(self, ev: _Evaluation) -> None:
        for board in ev.roles("motherboard"):
            for case in ev.roles("case"):
                form_factor = ev.text(board, "form_factor")
                supported = ev.text(case, "supported_form_factors")
                if form_factor is None or supported is None:
                    missing, name = (
                        (board, "form_factor") if form_factor is None else (case, "supported_form_factors")
                    )
                    ev.insufficient(board, case, missing, name, "form factor")
                    continue
                allowed = _split_list(supported)
                if _form_factor_key(form_factor) not in {_form_factor_key(a) for a in allowed}:
                    ev.add(
                        "error",
                        board,
                        case,
                        f"{form_factor} motherboard does not fit the case",
                        details=f"Case supports: {', '.join(allowed)}.",
                        severity="high",
                        field_name="form_factor",
                    )

    def _check_gpu_fit(self, ev: _Evaluation) -> None:
        for gpu in ev.roles("gpu"):
            for case in ev.roles("case"):
                length = ev.number(gpu, "length")
                limit = ev.number(case, "max_gpu_length")
                if length is None or limit is None:
                    missing, name = (gpu, "length") if length is None else (case, "max_gpu_length")
                    ev.insufficient(gpu, case, missing, name, "GPU clearance")
                    continue
                if length > limit:
                    ev.add(
                        "error",
                        gpu,
                        case,
                        "GPU too long for case",
                        details=(
                            f"GPU length ({length:g} mm) exceeds case maximum ({limit:g} mm). "
                            "GPU will not fit."
                        ),
                        severity="high",
                        field_name="length",
                    )
                elif length > limit * GPU_TIGHT_FIT_RATIO:
                    ev.add(
                        "warning",
                        gpu,
                        case,
                        "GPU fit may be tight",
                        details=(
                            f"GPU length ({length:g} mm) is close to case maximum ({limit:g} mm). "
                            "Verify clearance with cables and front fans."
                        ),
                        severity="medium",
                        field_name="length",
                    )

    def _compatible_coolers(self, ev: _Evaluation, cpu: str, coolers: List[str]) -> List[str]:
        cpu_socket = ev.value(cpu, "socket")
        compatible = []
        for cooler in coolers:
            supported = ev.text(cooler, "supported_sockets")
            if supported is None:
                ev.insufficient(cpu, cooler, cooler, "supported_sockets", "cooler socket")
                compatible.append(cooler)
                continue
            if cpu_socket is None:
                ev.insufficient(cpu, cooler, cpu, "socket", "cooler socket")
                compatible.append(cooler)
                continue
            sockets = {canonical_socket(item) for item in _split_list(supported)}
            if cpu_socket.value in sockets:
                compatible.append(cooler)
        return compatible

    def _check_cooling(self, ev: _Evaluation) -> None:
        coolers = ev.roles("cooler")
        for cpu in ev.roles("cpu"):
            if not coolers:
                ev.add(
                    "warning",
                    cpu,
                    "",
                    "No CPU cooler selected",
                    details="Add a cooler unless the CPU ships with a boxed cooler.",
                    severity="low",
                )
                continue
            compatible = self._compatible_coolers(ev, cpu, coolers)
            if not compatible:
                socket = ev.text(cpu, "socket")
                ev.add(
                    "error",
                    cpu,
                    coolers[0],
                    "No compatible CPU cooler found",
                    details=f"CPU with {socket} socket requires a cooler that supports {socket}.",
                    severity="high",
                    field_name="supported_sockets",
                )
                continue
            tdp = ev.number(cpu, "tdp")
            for cooler in compatible:
                rating = ev.number(cooler, "tdp_rating")
                if tdp is None or rating is None:
                    missing, name = (cpu, "tdp") if tdp is None else (cooler, "tdp_rating")
                    ev.insufficient(cpu, cooler, missing, name, "cooling capacity")
                    continue
                self._check_cooler_capacity(ev, cpu, cooler, tdp, rating)

    def _check_cooler_capacity(self, ev, cpu, cooler, tdp: float, rating: float) -> None:
        liquid = is_liquid_cooler(ev.text(cooler, "cooler_type"), ev.title(cooler))
        margin = LIQUID_COOLER_MARGIN if liquid else AIR_COOLER_MARGIN
        if tdp > rating:
            ev.add(
                "error",
                cpu,
                cooler,
                "Cooler capacity insufficient for CPU",
                details=f"CPU TDP ({tdp:g} W) exceeds cooler capacity ({rating:g} W).",
                severity="high",
                field_name="tdp_rating",
            )
        elif tdp > rating * margin:
            recommended = math.ceil(tdp / margin / 10) * 10
            ev.add(
                "warning",
                cpu,
                cooler,
                "Cooler may struggle with CPU thermal load",
                details=(
                    f"CPU TDP ({tdp:g} W) is close to cooler limit ({rating:g} W). "
                    f"Recommended: {recommended} W+ cooler."
                ),
                severity="medium",
                field_name="tdp_rating",
            )
        if tdp > AIR_COOLER_TDP_ADVISORY and not liquid:
            ev.add(
                "warning",
                cpu,
                cooler,
                "Consider liquid cooling for high-TDP CPU",
                details=f"CPU TDP of {tdp:g} W may run cooler and quieter with liquid cooling.",
                severity="low",
                field_name="cooler_type",
            )

    def _check_system_heat(self, ev: _Evaluation) -> None:
        total = 0.0
        for cpu in ev.roles("cpu"):
            total += ev.number(cpu, "tdp") or 0
        for gpu in ev.roles("gpu"):
            power = ev.number(gpu, "power_consumption") or 0
            total += power
            if power > GPU_AIRFLOW_THRESHOLD:
                for case in ev.roles("case"):
                    fans = ev.number(case, "included_fans")
                    if not fans:
                        ev.add(
                            "warning",
                            gpu,
                            case,
                            "High-TDP GPU needs adequate case airflow",
                            details=f"GPU draws {power:g} W; consider adding case fans.",
                            severity="medium",
                            field_name="included_fans",
                        )
        if total <= SYSTEM_HEAT_ADVISORY:
            return
        coolers = ev.roles("cooler")
        if any(is_liquid_cooler(ev.text(c, "cooler_type"), ev.title(c)) for c in coolers):
            return
        ev.add(
            "warning",
            "system",
            "",
            "High-performance build may benefit from liquid cooling",
            details=f"System heat output is {total:g} W.",
            severity="low",
        )

    # 3. Slot and connector constraints

    def _check_slots_and_connectors(self, ev: _Evaluation) -> None:
        for gpu in ev.roles("gpu"):
            for board in ev.roles("motherboard"):
                slots = ev.number(board, "pcie_x16_slots")
                if slots is None:
                    ev.insufficient(gpu, board, board, "pcie_x16_slots", "PCIe slot")
                elif slots < 1:
                    ev.add(
                        "warning",
                        gpu,
                        board,
                        "GPU may not have optimal PCIe slot",
                        details="Graphics cards need a PCIe x16 slot for full bandwidth.",
                        severity="medium",
                        field_name="pcie_x16_slots",
                    )
            psus = ev.roles("psu")
            if not psus:
                continue
            power = ev.number(gpu, "power_consumption")
            if power is None:
                ev.insufficient(gpu, psus[0], gpu, "power_consumption", "GPU power connector")
                continue
            if power <= GPU_CONNECTOR_THRESHOLD:
                continue
            for psu in psus:
                connectors = ev.number(psu, "pcie_connectors")
                if not connectors:
                    ev.add(
                        "error",
                        gpu,
                        psu,
                        "GPU requires dedicated power connectors",
                        details=f"A {power:g} W GPU needs PCIe power connectors from the PSU.",
                        severity="high",
                        field_name="pcie_connectors",
                    )

    # 4. Externally authored rules

    def _rule_roles(
        self, ev: _Evaluation, tag: Optional[CapabilityTag], category: Optional[str]
    ) -> List[str]:
        if ev.mode == "tagged" and tag is not None:
            return [role for role in sorted(ev.configuration) if tag in ev.tags.get(role, [])]
        if not category:
            return []
        if category in ev.configuration:
            return [category]
        # "case" and "cases" name the same slot
        target = self.registry.legacy_profile(category)
        if target is None:
            return []
        return ev.roles(target.id)

    @staticmethod
    def _covered_by_builtin(rule: CompatibilityRule) -> bool:
        pair = (rule.primary_field.lower(), rule.secondary_field.lower())
        return pair in BUILTIN_FIELD_PAIRS or pair[::-1] in BUILTIN_FIELD_PAIRS

    def _apply_rules(self, ev: _Evaluation, rules: Sequence[CompatibilityRule]) -> None:
        for rule in sorted(rules, key=lambda r: r.id):
            if self._covered_by_builtin(rule):
                continue
            for primary in self._rule_roles(ev, rule.primary_tag, rule.primary_category):
                for secondary in self._rule_roles(ev, rule.secondary_tag, rule.secondary_category):
                    if primary != secondary:
                        self._apply_rule(ev, rule, primary, secondary)

    def _apply_rule(self, ev: _Evaluation, rule: CompatibilityRule, primary: str, secondary: str) -> None:
        left = ev.value(primary, rule.primary_field)
        right = ev.value(secondary, rule.secondary_field)
        if left is None or right is None:
            missing, name = (
                (primary, rule.primary_field) if left is None else (secondary, rule.secondary_field)
            )
            ev.add(
                "warning",
                primary,
                secondary,
                f"Insufficient information for rule '{rule.name}'",
                details=f"{missing} does not declare '{name}'; the rule could not run.",
                severity="low",
                field_name=name,
                rule_id=rule.id,
            )
            return

        if rule.kind == RuleKind.EXACT_MATCH:
            ok = _comparable(left) == _comparable(right)
        elif rule.kind == RuleKind.COMPATIBLE_VALUES:
            if isinstance(right, TextValue):
                allowed = _split_list(right.value)
            else:
                allowed = [ev.text(secondary, rule.secondary_field)]
            ok = _token(ev.text(primary, rule.primary_field)) in {_token(a) for a in allowed}
        else:
            lo = ev.number(primary, rule.primary_field)
            hi = ev.number(secondary, rule.secondary_field)
            if lo is None or hi is None:
                ev.add(
                    "warning",
                    primary,
                    secondary,
                    f"Insufficient information for rule '{rule.name}'",
                    details="The rule compares numbers but one side is not numeric.",
                    severity="low",
                    field_name=rule.primary_field,
                    rule_id=rule.id,
                )
                return
            ok = lo <= hi

        if ok:
            return
        kind, severity = RULE_SEVERITY_MAP[rule.severity]
        ev.add(
            kind,
            primary,
            secondary,
            f"{rule.name}: {rule.primary_field} {_show(left)} vs "
            f"{rule.secondary_field} {_show(right)}",
            details=rule.description,
            severity=severity,
            field_name=rule.primary_field,
            rule_id=rule.id,
        )

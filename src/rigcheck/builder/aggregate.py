"""结果汇总：合并兼容性与功耗检查的结论"""

from __future__ import annotations

from typing import Iterable, List

from ..schemas import EvaluationMode, Issue, ValidationResult
from .power import PowerBudget


def _dedupe(findings: Iterable[Issue]) -> List[Issue]:
    seen = set()
    unique: List[Issue] = []
    for finding in findings:
        key = finding.model_dump_json()
        if key in seen:
            continue
        seen.add(key)
        unique.append(finding)
    return unique


def aggregate_result(
    *finding_groups: Iterable[Issue],
    power: PowerBudget | None = None,
    evaluation_mode: EvaluationMode = "tagged",
) -> ValidationResult:
    """汇总为最终结果

    Only errors make a configuration invalid; warnings never block.
    Identical findings are reported once, first-seen order preserved.
    """
    findings = _dedupe(f for group in finding_groups for f in group)
    issues = [f for f in findings if f.kind == "error"]
    warnings = [f for f in findings if f.kind == "warning"]
    power = power or PowerBudget()
    return ValidationResult(
        is_valid=not issues,
        issues=issues,
        warnings=warnings,
        actual_power_consumption=power.actual_consumption,
        recommended_psu_power=power.recommended_psu_power,
        evaluation_mode=evaluation_mode,
    )

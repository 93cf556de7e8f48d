from rigcheck.builder.aggregate import aggregate_result
from rigcheck.builder.power import PowerBudget
from rigcheck.schemas import Issue


def _issue(kind, message, **kw):
    return Issue(kind=kind, role_a="processors", message=message, **kw)


def test_identical_findings_reported_once():
    socket = _issue("error", "CPU socket AM5 does not match motherboard socket AM4", severity="high")
    cooler = _issue("warning", "No CPU cooler selected", severity="low")

    result = aggregate_result([socket, cooler], [socket, cooler])

    assert result.issues == [socket]
    assert result.warnings == [cooler]


def test_findings_differing_in_any_field_are_kept():
    first = _issue("warning", "Insufficient information for rule 'X'", field="height")
    second = _issue("warning", "Insufficient information for rule 'X'", field="max_cooler_height")

    assert len(aggregate_result([first, second]).warnings) == 2


def test_only_errors_invalidate():
    result = aggregate_result([_issue("warning", "PSU is oversized for this build")])

    assert result.is_valid
    assert result.recommended_psu_power == 0


def test_power_figures_are_copied():
    budget = PowerBudget(actual_consumption=152, recommended_psu_power=182, source="component_sum")

    result = aggregate_result([], power=budget, evaluation_mode="legacy")

    assert result.actual_power_consumption == 152
    assert result.recommended_psu_power == 182
    assert result.evaluation_mode == "legacy"

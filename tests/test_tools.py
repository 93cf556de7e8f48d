import pytest

from rigcheck.tools import Toolset


@pytest.fixture
def tools(service):
    return Toolset(service).register()


def test_registers_three_tools(tools):
    assert set(tools) == {"validate_configuration", "normalize_specification", "detect_profiles"}


def test_validate_configuration_tool(tools):
    payload = tools["validate_configuration"].invoke(
        {
            "configuration": {
                "processors": {
                    "id": "cpu-1",
                    "title": "AMD Ryzen 5 7600X",
                    "specifications": [
                        {"name": "socket", "raw_value": "AM5"},
                        {"name": "tdp", "raw_value": "105 W"},
                    ],
                },
                "motherboards": {
                    "id": "mb-1",
                    "title": "B550 board",
                    "specifications": [
                        {"name": "socket", "raw_value": "AM4"},
                        {"name": "chipset", "raw_value": "B550"},
                    ],
                },
            }
        }
    )

    assert payload["is_valid"] is False
    assert payload["issues"][0]["field"] == "socket"
    assert payload["evaluation_mode"] == "tagged"


def test_normalize_specification_tool(tools):
    payload = tools["normalize_specification"].invoke(
        {"raw_value": "3.2 GHz", "profile_id": "cpu", "field": "base_clock"}
    )

    assert payload["is_valid"] is True
    assert payload["value"]["value"] == 3200
    assert payload["value"]["kind"] == "frequency"


def test_normalize_specification_tool_reports_errors(tools):
    payload = tools["normalize_specification"].invoke(
        {"raw_value": "DDR3", "profile_id": "ram", "field": "memory_type"}
    )

    assert payload["is_valid"] is False
    assert payload["suggestions"] == ["DDR4", "DDR5"]


def test_detect_profiles_tool(tools):
    matches = tools["detect_profiles"].invoke({"category_name": "显卡"})

    assert matches[0]["profile_id"] == "gpu"

from fastapi.testclient import TestClient

from rigcheck.main import app


def _component(cid, title, **specs):
    return {
        "id": cid,
        "title": title,
        "specifications": [{"name": k, "raw_value": v} for k, v in specs.items()],
    }


def test_validate_endpoint_reports_socket_mismatch():
    client = TestClient(app)

    resp = client.post(
        "/api/validate",
        json={
            "configuration": {
                "processors": _component("cpu-1", "Intel Core i5-13600K", socket="LGA1700", tdp=125),
                "motherboards": _component("mb-1", "B650 board", socket="AM5", chipset="B650"),
            }
        },
    )

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["is_valid"] is False
    assert len(payload["issues"]) == 1
    assert "LGA1700" in payload["issues"][0]["message"]


def test_validate_endpoint_power_figures():
    client = TestClient(app)

    resp = client.post(
        "/api/validate",
        json={
            "configuration": {
                "graphics-cards": _component(
                    "gpu-1", "RTX 4080", power_consumption=320, recommended_psu_power=750, length=304
                ),
                "power-supplies": _component(
                    "psu-1",
                    "850W Gold",
                    wattage=850,
                    efficiency_rating="80 PLUS Gold",
                    form_factor="ATX",
                    modular=True,
                    pcie_connectors=3,
                ),
            }
        },
    )

    payload = resp.json()
    assert payload["is_valid"] is True
    assert payload["recommended_psu_power"] == 750
    assert payload["actual_power_consumption"] == 350


def test_validate_endpoint_rejects_malformed_payload():
    client = TestClient(app)

    resp = client.post("/api/validate", json={"configuration": {"processors": {"title": "no id"}}})

    assert resp.status_code == 422


def test_normalize_endpoint():
    client = TestClient(app)

    resp = client.post(
        "/api/normalize",
        json={"raw_value": "1 TB", "profile_id": "storage", "field": "capacity"},
    )

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["is_valid"] is True
    assert payload["value"]["value"] == 1024


def test_detect_profiles_endpoint():
    client = TestClient(app)

    resp = client.post("/api/detect-profiles", json={"category_name": "Power Supplies"})

    assert resp.status_code == 200
    assert resp.json()[0]["profile_id"] == "psu"


def test_profiles_endpoint_lists_every_profile():
    client = TestClient(app)

    resp = client.get("/api/profiles")

    assert resp.status_code == 200
    ids = [p["id"] for p in resp.json()]
    assert ids == ["cpu", "gpu", "motherboard", "ram", "storage", "psu", "case", "cooler"]

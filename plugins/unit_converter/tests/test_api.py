import json

import pytest

from app import create_app
from plugins.unit_converter.core.currency import RateCache, RateService


@pytest.fixture
def app():
    return create_app("TestingConfig")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def live_rates(app, currency_settings, clock, http, fake_session):
    """Install a rate service backed by a fake provider into ``app``."""

    session = fake_session(http.success(), http.response(429))
    service = RateService(
        currency_settings,
        cache=RateCache(currency_settings.cache_path),
        session=session,
        clock=clock,
    )
    app.extensions["rate_service"] = service
    yield service
    service.stop()


def test_categories_endpoint_lists_units(client):
    response = client.get("/api/unit_converter/categories")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    assert payload["data"]["categories"][0] == "Length"
    assert "feet" in payload["data"]["units"]["Length"]
    assert payload["data"]["units"]["Currency"] == ["USD", "EUR", "GBP", "JPY", "CAD", "AUD"]


def test_units_endpoint(client):
    response = client.get("/api/unit_converter/units/temperature")
    assert response.status_code == 200
    assert response.get_json()["data"] == {
        "category": "Temperature",
        "units": ["Celsius", "Fahrenheit", "Kelvin"],
    }


def test_units_endpoint_rejects_unknown_category(client):
    response = client.get("/api/unit_converter/units/luminosity")
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "unit.invalid_category"


def test_convert_endpoint_success(client):
    response = client.post(
        "/api/unit_converter/convert",
        json={"category": "Length", "value": "1", "from_unit": "meters", "to_unit": "feet"},
    )
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["value"] == pytest.approx(3.28084)
    assert data["formatted"] == "3.28"
    assert data["equation"] == "y = 3.2808x (meters to feet)"


def test_convert_endpoint_placeholder_for_unknown_unit(client):
    response = client.post(
        "/api/unit_converter/convert",
        json={"category": "Length", "value": 1, "from_unit": "meters", "to_unit": "bogus"},
    )
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["value"] is None
    assert data["formatted"] == "---"
    assert data["equation"] is None


def test_convert_endpoint_placeholder_for_bad_value(client):
    response = client.post(
        "/api/unit_converter/convert",
        json={"category": "Temperature", "value": "", "from_unit": "Celsius", "to_unit": "Kelvin"},
    )
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["formatted"] == "---"
    assert data["equation"] == "K = °C + 273.15"


def test_convert_endpoint_rejects_malformed_payload(client):
    response = client.post(
        "/api/unit_converter/convert",
        json={"category": "Length", "value": 1, "from_unit": "meters", "extra": True},
    )
    assert response.status_code == 400
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"]["code"] == "unit.invalid_request"


def test_convert_endpoint_rejects_unknown_category(client):
    response = client.post(
        "/api/unit_converter/convert",
        json={"category": "Vibes", "value": 1, "from_unit": "a", "to_unit": "b"},
    )
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "unit.invalid_category"


def test_table_endpoint(client):
    response = client.post(
        "/api/unit_converter/table",
        json={"category": "Mass", "value": 1, "from_unit": "kilograms"},
    )
    assert response.status_code == 200
    rows = response.get_json()["data"]["rows"]
    assert [row["unit"] for row in rows][:2] == ["kilograms", "pounds"]
    assert rows[2]["formatted"] == "1000.00"


def test_chart_endpoint(client):
    response = client.post(
        "/api/unit_converter/chart",
        json={"category": "Speed", "value": 5, "from_unit": "meters per second", "to_unit": "kilometers per hour"},
    )
    points = response.get_json()["data"]["points"]
    assert len(points) == 21
    assert points[-1]["y"] == pytest.approx(36.0)


def test_currency_conversion_uses_live_rates(client, live_rates):
    response = client.post("/api/unit_converter/rates/refresh")
    assert response.status_code == 200
    assert response.get_json()["data"]["state"] == "ready"

    response = client.post(
        "/api/unit_converter/convert",
        json={"category": "Currency", "value": 100, "from_unit": "USD", "to_unit": "EUR"},
    )
    payload = response.get_json()
    assert payload["data"]["value"] == pytest.approx(92.0)
    assert payload["meta"]["rates_state"] == "ready"


def test_currency_error_is_reported_and_dismissible(client, live_rates):
    assert client.post("/api/unit_converter/rates/refresh").status_code == 200
    response = client.post("/api/unit_converter/rates/refresh")
    assert response.status_code == 429
    error = response.get_json()["error"]
    assert error["code"] == "currency.RateLimited"
    assert error["message"] == "Rate limit exceeded, try again later"
    status = error["details"]["status"]
    assert status["last_error_code"] == "RateLimited"
    assert status["currencies"]

    response = client.post("/api/unit_converter/rates/dismiss")
    assert response.get_json()["data"]["last_error"] is None
    assert client.get("/api/unit_converter/rates/status").get_json()["data"]["state"] == "ready"


def test_currency_placeholder_before_rates_load(client, live_rates):
    response = client.post(
        "/api/unit_converter/convert",
        json={"category": "Currency", "value": 1, "from_unit": "USD", "to_unit": "EUR"},
    )
    payload = response.get_json()
    assert payload["data"]["value"] is None
    assert payload["data"]["equation"] == "Loading exchange rates..."
    assert payload["meta"]["last_updated_text"] == "Never updated"


def test_refresh_failure_without_snapshot_is_upstream_error(
    app, client, currency_settings, clock, http, fake_session
):
    service = RateService(
        currency_settings,
        cache=RateCache(currency_settings.cache_path),
        session=fake_session(http.response(503)),
        clock=clock,
    )
    app.extensions["rate_service"] = service
    try:
        response = client.post("/api/unit_converter/rates/refresh")
    finally:
        service.stop()
    assert response.status_code == 502
    error = response.get_json()["error"]
    assert error["code"] == "currency.ServerError"
    assert error["details"]["status"]["state"] == "error"


def test_overflowing_conversion_stays_valid_json(client):
    def reject(constant):
        raise AssertionError(f"non-standard JSON constant {constant}")

    for endpoint in ("convert", "table", "chart"):
        response = client.post(
            f"/api/unit_converter/{endpoint}",
            json={
                "category": "Energy",
                "value": "1e300",
                "from_unit": "joules",
                "to_unit": "electron volts",
            },
        )
        assert response.status_code == 200
        payload = json.loads(response.get_data(as_text=True), parse_constant=reject)
        if endpoint == "convert":
            assert payload["data"]["value"] is None
            assert payload["data"]["formatted"] == "---"

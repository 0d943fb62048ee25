import threading
from types import SimpleNamespace

import pytest

from plugins.unit_converter.core.currency import RateCache, RateService
from plugins.unit_converter.core.settings import DEFAULT_PROVIDER_URL, CurrencySettings

SAMPLE_RATES = {"USD": 1, "EUR": 0.92, "GBP": 0.79, "JPY": 151.3, "CAD": 1.36, "AUD": 1.52}
INVALID_JSON = object()


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is INVALID_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) for ``get``."""

    def __init__(self, *responses, gate: threading.Event | None = None):
        self.responses = list(responses)
        self.calls = []
        self.gate = gate

    def get(self, url, timeout=None):
        self.calls.append({"url": url, "timeout": timeout})
        if self.gate is not None:
            self.gate.wait(5)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def success(rates=None):
    return FakeResponse(200, {"result": "success", "conversion_rates": dict(rates or SAMPLE_RATES)})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def currency_settings(tmp_path):
    return CurrencySettings(
        api_key="test-key",
        provider_url=DEFAULT_PROVIDER_URL,
        base_currency="USD",
        cache_dir=tmp_path / "cache",
        max_age_hours=24,
        refresh_interval_seconds=3600,
        timeout_seconds=1,
    )


@pytest.fixture
def make_service(currency_settings, clock):
    services = []

    def factory(*responses, settings=None, gate=None):
        session = FakeSession(*responses, gate=gate)
        active = settings or currency_settings
        service = RateService(
            active, cache=RateCache(active.cache_path), session=session, clock=clock
        )
        services.append(service)
        return service, session

    yield factory
    for service in services:
        service.stop()


@pytest.fixture
def http():
    """Builders for fake provider responses."""

    return SimpleNamespace(success=success, response=FakeResponse, invalid_json=INVALID_JSON)


@pytest.fixture
def fake_session():
    return FakeSession

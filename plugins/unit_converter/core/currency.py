"""Live exchange rates with a local cache and periodic refresh."""

from __future__ import annotations

import json
import math
import os
import tempfile
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from common.logging import get_logger
from common.tasks import PeriodicTask, SingleFlight

from .converter import convert_with_rates
from .registry import AVAILABLE_CURRENCIES
from .settings import CurrencySettings

logger = get_logger("convertly.currency")


class CurrencyError(Exception):
    """Base exception for exchange-rate fetch failures."""

    code = "CurrencyError"
    http_status = 502

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkError(CurrencyError):
    code = "NetworkError"
    http_status = 503

    def __init__(self, reason: str) -> None:
        super().__init__(f"Network error: {reason}")
        self.reason = reason


class EndpointNotFound(CurrencyError):
    code = "EndpointNotFound"

    def __init__(self) -> None:
        super().__init__("API endpoint not found")


class RateLimited(CurrencyError):
    code = "RateLimited"
    http_status = 429

    def __init__(self) -> None:
        super().__init__("Rate limit exceeded, try again later")


class ServerError(CurrencyError):
    code = "ServerError"

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server returned status code {status_code}")
        self.status_code = status_code


class DecodeFailed(CurrencyError):
    code = "DecodeFailed"


class ApiKeyMissing(CurrencyError):
    code = "ApiKeyMissing"
    http_status = 503

    def __init__(self) -> None:
        super().__init__("API key not configured")


class CacheWriteFailed(CurrencyError):
    code = "CacheWriteFailed"
    http_status = 500


@dataclass(frozen=True)
class RateSnapshot:
    """Immutable set of USD-relative rates and the time they were fetched."""

    rates: Mapping[str, float]
    fetched_at: float

    @classmethod
    def create(cls, rates: Mapping[str, float], fetched_at: float) -> "RateSnapshot":
        return cls(rates=MappingProxyType(dict(rates)), fetched_at=float(fetched_at))

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def to_dict(self) -> Dict[str, Any]:
        return {"rates": dict(self.rates), "fetched_at": self.fetched_at}


def decode_rates(payload: Any, *, base: str = "USD") -> Dict[str, float]:
    """Validate a provider payload and return its ``conversion_rates`` mapping."""

    if not isinstance(payload, Mapping):
        raise DecodeFailed("Response body is not a JSON object")
    result = payload.get("result")
    if result is not None and result != "success":
        raise DecodeFailed(f"Provider reported result '{result}'")
    raw_rates = payload.get("conversion_rates")
    if not isinstance(raw_rates, Mapping) or not raw_rates:
        raise DecodeFailed("Response is missing 'conversion_rates'")
    rates: Dict[str, float] = {}
    for code, value in raw_rates.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodeFailed(f"Rate for '{code}' is not a number")
        if not math.isfinite(value) or value <= 0:
            raise DecodeFailed(f"Rate for '{code}' must be positive")
        rates[str(code)] = float(value)
    rates.setdefault(base, 1.0)
    return rates


def fetch_rates(session: Any, settings: CurrencySettings) -> Dict[str, float]:
    """Fetch the latest rates from the provider or raise a :class:`CurrencyError`."""

    if not settings.has_api_key:
        raise ApiKeyMissing()
    try:
        response = session.get(settings.endpoint(), timeout=settings.timeout_seconds)
    except requests.RequestException as exc:
        raise NetworkError(str(exc)) from exc
    status = response.status_code
    if status == 404:
        raise EndpointNotFound()
    if status == 429:
        raise RateLimited()
    if status != 200:
        raise ServerError(status)
    try:
        payload = response.json()
    except ValueError as exc:
        raise DecodeFailed("Response body is not valid JSON") from exc
    return decode_rates(payload, base=settings.base_currency)


class RateCache:
    """Single JSON record on disk holding the last successful snapshot."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[RateSnapshot]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            rates = decode_rates({"conversion_rates": data["rates"]})
            return RateSnapshot.create(rates, float(data["fetched_at"]))
        except (OSError, ValueError, KeyError, TypeError, DecodeFailed) as exc:
            logger.warning("ignoring unreadable rate cache %s: %s", self.path, exc)
            return None

    def save(self, snapshot: RateSnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".rates-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(snapshot.to_dict(), handle)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def describe_age(fetched_at: Optional[float], now: float) -> str:
    """Human readable recency of ``fetched_at`` relative to ``now``."""

    if fetched_at is None:
        return "Never updated"
    seconds = max(0, int(now - fetched_at))
    if seconds < 60:
        return "Last updated just now"
    for size, label in ((86400, "day"), (3600, "hour"), (60, "minute")):
        if seconds >= size:
            count = seconds // size
            suffix = "" if count == 1 else "s"
            return f"Last updated {count} {label}{suffix} ago"
    return "Last updated just now"  # pragma: no cover


class RateService:
    """Owns the active rate snapshot, its cache and the refresh schedule."""

    def __init__(
        self,
        settings: CurrencySettings,
        *,
        cache: Optional[RateCache] = None,
        session: Any = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.cache = cache or RateCache(settings.cache_path)
        self._session = session or requests.Session()
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[RateSnapshot] = None
        self._last_error: Optional[CurrencyError] = None
        self._runner = SingleFlight("currency-refresh")
        self._timer: Optional[PeriodicTask] = None

    # ---- State -----------------------------------------------------------
    def snapshot(self) -> Optional[RateSnapshot]:
        with self._lock:
            return self._snapshot

    @property
    def is_loading(self) -> bool:
        return self._runner.in_flight()

    @property
    def last_error(self) -> Optional[CurrencyError]:
        with self._lock:
            return self._last_error

    @property
    def state(self) -> str:
        if self.is_loading:
            return "loading"
        with self._lock:
            if self._last_error is not None:
                return "error"
            return "ready" if self._snapshot is not None else "empty"

    def dismiss_error(self) -> None:
        with self._lock:
            self._last_error = None

    def _is_fresh(self, snapshot: Optional[RateSnapshot]) -> bool:
        return snapshot is not None and snapshot.age(self._clock()) < self.settings.max_age_seconds

    # ---- Loading ---------------------------------------------------------
    def adopt_cached(self) -> bool:
        """Adopt the persisted snapshot when it is younger than the max age."""

        cached = self.cache.load()
        if not self._is_fresh(cached):
            return False
        with self._lock:
            current = self._snapshot
            if current is None or current.fetched_at < cached.fetched_at:
                self._snapshot = cached
        logger.info("adopted cached exchange rates (%d currencies)", len(cached.rates))
        return True

    def ensure_loaded(self, timeout: float | None = None) -> str:
        """Make rates available, fetching only when no fresh snapshot exists."""

        if self._is_fresh(self.snapshot()) or self.adopt_cached():
            return self.state
        self.refresh().result(timeout)
        return self.state

    def warm_up(self) -> None:
        """Non-blocking variant of :meth:`ensure_loaded` used at startup."""

        if self._is_fresh(self.snapshot()) or self.adopt_cached():
            return
        self.refresh()

    def refresh(self) -> "Future[Optional[RateSnapshot]]":
        """Start a fetch unless one is already in flight and return its future."""

        return self._runner.submit(self._fetch_and_store)

    def _fetch_and_store(self) -> Optional[RateSnapshot]:
        with self._lock:
            self._last_error = None
        logger.info("fetching exchange rates for base %s", self.settings.base_currency)
        try:
            rates = fetch_rates(self._session, self.settings)
            snapshot = RateSnapshot.create(rates, self._clock())
            try:
                self.cache.save(snapshot)
            except OSError as exc:
                raise CacheWriteFailed(f"Could not persist exchange rates: {exc}") from exc
        except CurrencyError as exc:
            logger.warning("exchange rate refresh failed [%s]: %s", exc.code, exc.message)
            with self._lock:
                self._last_error = exc
            return None
        with self._lock:
            self._snapshot = snapshot
        logger.info("exchange rates updated (%d currencies)", len(snapshot.rates))
        return snapshot

    # ---- Schedule --------------------------------------------------------
    def start(self) -> None:
        if self._timer is None:
            self._timer = PeriodicTask(
                self.settings.refresh_interval_seconds, self.refresh, name="currency-timer"
            )
        self._timer.start()

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.stop(timeout=1.0)
        self._runner.shutdown()

    # ---- Conversions -----------------------------------------------------
    def rates(self) -> Optional[Mapping[str, float]]:
        snapshot = self.snapshot()
        return snapshot.rates if snapshot is not None else None

    def convert(self, value: float, from_code: str, to_code: str) -> Optional[float]:
        return convert_with_rates(value, from_code, to_code, self.rates())

    def last_updated_text(self) -> str:
        snapshot = self.snapshot()
        return describe_age(snapshot.fetched_at if snapshot else None, self._clock())

    def status(self) -> Dict[str, Any]:
        snapshot = self.snapshot()
        error = self.last_error
        rates = snapshot.rates if snapshot else {}
        last_updated = None
        if snapshot is not None:
            last_updated = datetime.fromtimestamp(snapshot.fetched_at, tz=timezone.utc).isoformat()
        return {
            "state": self.state,
            "is_loading": self.is_loading,
            "last_error": error.message if error else None,
            "last_error_code": error.code if error else None,
            "last_updated": last_updated,
            "last_updated_text": self.last_updated_text(),
            "currencies": [code for code in AVAILABLE_CURRENCIES if code in rates],
        }


__all__ = [
    "CurrencyError",
    "NetworkError",
    "EndpointNotFound",
    "RateLimited",
    "ServerError",
    "DecodeFailed",
    "ApiKeyMissing",
    "CacheWriteFailed",
    "RateSnapshot",
    "RateCache",
    "RateService",
    "decode_rates",
    "fetch_rates",
    "describe_age",
]

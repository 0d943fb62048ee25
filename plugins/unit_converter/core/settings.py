"""Configuration helpers for the currency rate service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

API_KEY_PLACEHOLDER = "YOUR_API_KEY"
DEFAULT_PROVIDER_URL = "https://v6.exchangerate-api.com/v6/{api_key}/latest/{base}"
CACHE_FILENAME = "cached_exchange_rates.json"


@dataclass(frozen=True)
class CurrencySettings:
    api_key: str
    provider_url: str
    base_currency: str
    cache_dir: Path
    max_age_hours: float
    refresh_interval_seconds: float
    timeout_seconds: float

    @property
    def cache_path(self) -> Path:
        return self.cache_dir / CACHE_FILENAME

    @property
    def max_age_seconds(self) -> float:
        return self.max_age_hours * 3600

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key) and self.api_key != API_KEY_PLACEHOLDER

    def endpoint(self) -> str:
        return self.provider_url.format(api_key=self.api_key, base=self.base_currency)


def _resolve_path(root: Path, value: str) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return (root / path).resolve()


def _positive_float(raw: object, default: float) -> float:
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def load_settings(raw: Mapping[str, object] | None, *, root: Path) -> CurrencySettings:
    raw = raw or {}
    api_key = os.environ.get("CONVERTLY_API_KEY") or str(raw.get("api_key") or "")
    cache_dir = os.environ.get("CONVERTLY_CACHE_DIR") or str(
        raw.get("cache_dir", "instance/cache")
    )
    base_currency = str(raw.get("base_currency") or "USD").upper()
    return CurrencySettings(
        api_key=api_key.strip(),
        provider_url=str(raw.get("provider_url") or DEFAULT_PROVIDER_URL),
        base_currency=base_currency,
        cache_dir=_resolve_path(root, cache_dir),
        max_age_hours=_positive_float(raw.get("max_age_hours"), 24.0),
        refresh_interval_seconds=_positive_float(raw.get("refresh_interval_seconds"), 3600.0),
        timeout_seconds=_positive_float(raw.get("timeout_seconds"), 10.0),
    )


__all__ = ["API_KEY_PLACEHOLDER", "CurrencySettings", "load_settings"]

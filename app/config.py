"""Configuration classes for the Flask application."""

from __future__ import annotations

import os

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _log_level(default: str = "INFO") -> str:
    level = os.environ.get("CONVERTLY_LOG_LEVEL", default).strip().upper()
    return level if level in LOG_LEVELS else default


def _positive_float(name: str, default: float) -> float:
    try:
        value = float(os.environ.get(name, default))
    except ValueError:
        return default
    return value if value > 0 else default


class BaseConfig:
    LOG_LEVEL = _log_level()
    MAX_CONTENT_LENGTH = 64 * 1024
    # warm the rate cache and start the hourly timer when the plugin loads
    CURRENCY_AUTOSTART = True
    # POST /rates/refresh answers 504 once the fetch outlives this wait
    RATES_REFRESH_WAIT_SECONDS = _positive_float("CONVERTLY_REFRESH_WAIT", 10.0)
    RESPONSE_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
        "Referrer-Policy": "no-referrer",
        "Cache-Control": "no-store",
    }


class DevelopmentConfig(BaseConfig):
    LOG_LEVEL = _log_level("DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    CURRENCY_AUTOSTART = False
    RATES_REFRESH_WAIT_SECONDS = 5.0


__all__ = ["BaseConfig", "DevelopmentConfig", "TestingConfig"]

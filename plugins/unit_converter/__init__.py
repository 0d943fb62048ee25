"""Unit converter plugin."""

from __future__ import annotations

import atexit
from pathlib import Path
from typing import Mapping

manifest = {
    "title": "Unit Converter",
    "summary": "Length, area, volume, mass, temperature, speed, time, energy, pressure and live currency conversions.",
    "blueprint": "unit_converter",
    "category": "General Utilities",
    "icon": "img/UnitConverter_icon.png",
}


def init_app(app, settings: Mapping[str, object] | None) -> None:
    """Attach the process-wide currency rate service to ``app``."""

    from .core import build_rate_service

    root = Path(app.root_path).parent
    service = build_rate_service((settings or {}).get("currency"), root=root)
    app.extensions["rate_service"] = service
    if app.config.get("CURRENCY_AUTOSTART", True):
        service.warm_up()
        service.start()
        atexit.register(service.stop)


__all__ = ["manifest", "init_app"]

"""Blueprint registration helpers."""

from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import Iterable

from flask import Flask


def _iter_plugin_packages(package: str = "plugins") -> Iterable[str]:
    module_path = Path(__file__).resolve().parent.parent / package
    if not module_path.exists():
        return []
    return [
        f"{package}.{module_info.name}"
        for module_info in pkgutil.iter_modules([str(module_path)])
        if module_info.ispkg
    ]


def _iter_blueprints(package: str = "plugins") -> Iterable:
    blueprints = []
    for dotted in _iter_plugin_packages(package):
        module = importlib.import_module(f"{dotted}.api")
        module_blueprints = getattr(module, "blueprints", None)
        if module_blueprints:
            blueprints.extend(module_blueprints)
            continue
        blueprint = getattr(module, "bp", None)
        if blueprint is not None:
            blueprints.append(blueprint)
    return blueprints


def register_plugin_blueprints(app: Flask) -> None:
    for bp in _iter_blueprints():
        app.register_blueprint(bp)


def init_plugins(app: Flask, package: str = "plugins") -> None:
    """Call each plugin's optional ``init_app(app, settings)`` hook."""

    plugin_settings = app.config.get("PLUGIN_SETTINGS", {})
    for dotted in _iter_plugin_packages(package):
        module = importlib.import_module(dotted)
        hook = getattr(module, "init_app", None)
        if hook is None:
            continue
        blueprint = getattr(module, "manifest", {}).get("blueprint")
        hook(app, plugin_settings.get(blueprint, {}) if blueprint else {})


__all__ = ["register_plugin_blueprints", "init_plugins"]

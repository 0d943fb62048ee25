"""Conversion engines and display helpers for the unit converter."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from functools import partial
from typing import Callable, Dict, List, Mapping, Optional

from .registry import (
    FACTOR_TABLES,
    LINEAR_CATEGORIES,
    UnitCategory,
    list_units,
)

Rates = Mapping[str, float]

NO_RESULT = "---"
RATES_LOADING = "Loading exchange rates..."
CHART_STEPS = 20

_TO_CELSIUS: Dict[str, Callable[[float], float]] = {
    "Celsius": lambda value: value,
    "Fahrenheit": lambda value: (value - 32) * 5 / 9,
    "Kelvin": lambda value: value - 273.15,
}

_FROM_CELSIUS: Dict[str, Callable[[float], float]] = {
    "Celsius": lambda value: value,
    "Fahrenheit": lambda value: value * 9 / 5 + 32,
    "Kelvin": lambda value: value + 273.15,
}

_TEMPERATURE_EQUATIONS: Dict[tuple[str, str], str] = {
    ("Celsius", "Fahrenheit"): "°F = (°C × 9/5) + 32",
    ("Fahrenheit", "Celsius"): "°C = (°F - 32) × 5/9",
    ("Celsius", "Kelvin"): "K = °C + 273.15",
    ("Kelvin", "Celsius"): "°C = K - 273.15",
    ("Fahrenheit", "Kelvin"): "K = (°F - 32) × 5/9 + 273.15",
    ("Kelvin", "Fahrenheit"): "°F = (K - 273.15) × 9/5 + 32",
}


# ---- Engines -------------------------------------------------------------
def convert_linear(
    category: UnitCategory, value: float, from_unit: str, to_unit: str
) -> Optional[float]:
    """Convert through the category's base unit; ``None`` for unknown units."""

    table = FACTOR_TABLES.get(category)
    if table is None:
        return None
    from_factor = table.get(from_unit)
    to_factor = table.get(to_unit)
    if from_factor is None or to_factor is None:
        return None
    return value / from_factor * to_factor


def convert_temperature(value: float, from_unit: str, to_unit: str) -> Optional[float]:
    """Convert via Celsius. No physical validity check is applied."""

    to_celsius = _TO_CELSIUS.get(from_unit)
    from_celsius = _FROM_CELSIUS.get(to_unit)
    if to_celsius is None or from_celsius is None:
        return None
    return from_celsius(to_celsius(value))


def convert_with_rates(
    value: float, from_code: str, to_code: str, rates: Optional[Rates]
) -> Optional[float]:
    """Convert currencies using USD-relative ``rates``."""

    if not rates:
        return None
    from_rate = rates.get(from_code)
    to_rate = rates.get(to_code)
    if from_rate is None or to_rate is None or from_rate <= 0:
        return None
    return _finite(value / from_rate * to_rate)


def _finite(value: Optional[float]) -> Optional[float]:
    # overflow to inf or nan has no displayable value
    if value is None or not math.isfinite(value):
        return None
    return value


def _linear_engine(category: UnitCategory):
    def engine(value: float, from_unit: str, to_unit: str, rates: Optional[Rates]):
        return convert_linear(category, value, from_unit, to_unit)

    return engine


def _temperature_engine(value: float, from_unit: str, to_unit: str, rates: Optional[Rates]):
    return convert_temperature(value, from_unit, to_unit)


def _currency_engine(value: float, from_unit: str, to_unit: str, rates: Optional[Rates]):
    return convert_with_rates(value, from_unit, to_unit, rates)


_ENGINES: Dict[UnitCategory, Callable[..., Optional[float]]] = {
    **{category: _linear_engine(category) for category in LINEAR_CATEGORIES},
    UnitCategory.TEMPERATURE: _temperature_engine,
    UnitCategory.CURRENCY: _currency_engine,
}


def convert(
    category: UnitCategory,
    value: float,
    from_unit: str,
    to_unit: str,
    *,
    rates: Optional[Rates] = None,
) -> Optional[float]:
    """Dispatch to the engine registered for ``category``."""

    return _finite(_ENGINES[category](value, from_unit, to_unit, rates))


# ---- Display helpers -----------------------------------------------------
def describe_conversion(
    category: UnitCategory,
    from_unit: str,
    to_unit: str,
    *,
    rates: Optional[Rates] = None,
) -> Optional[str]:
    """Return a human readable equation for the unit pair, if one exists."""

    if category is UnitCategory.TEMPERATURE:
        if from_unit == to_unit:
            return "y = x (no conversion needed)"
        return _TEMPERATURE_EQUATIONS.get((from_unit, to_unit))
    if category is UnitCategory.CURRENCY:
        factor = convert_with_rates(1.0, from_unit, to_unit, rates)
        if factor is None:
            return RATES_LOADING
        return _linear_equation(factor, from_unit, to_unit)
    factor = convert_linear(category, 1.0, from_unit, to_unit)
    if factor is None:
        return None
    return _linear_equation(factor, from_unit, to_unit)


def _linear_equation(factor: float, from_unit: str, to_unit: str) -> str:
    return f"y = {factor:.4f}x ({from_unit} to {to_unit})"


def parse_input(text: object) -> Optional[float]:
    """Parse user input; anything non-numeric yields ``None``."""

    if isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        number = float(text)
        return number if math.isfinite(number) else None
    if not isinstance(text, str):
        return None
    stripped = text.strip()
    if not stripped or len(stripped) > 64:
        return None
    try:
        parsed = Decimal(stripped)
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return float(parsed)


def format_result(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return NO_RESULT
    return f"{value:.2f}"


def conversion_table(
    category: UnitCategory,
    value: float,
    from_unit: str,
    *,
    rates: Optional[Rates] = None,
) -> List[Dict[str, object]]:
    """Convert ``value`` into every unit offered for ``category``."""

    rows: List[Dict[str, object]] = []
    for unit in list_units(category):
        converted = convert(category, value, from_unit, unit, rates=rates)
        rows.append({"unit": unit, "value": converted, "formatted": format_result(converted)})
    return rows


def chart_points(
    category: UnitCategory,
    value: float,
    from_unit: str,
    to_unit: str,
    *,
    rates: Optional[Rates] = None,
) -> List[Dict[str, float]]:
    """Sample the conversion curve on ``[0, 2 * value]``."""

    if not value > 0:
        return []
    step = value / (CHART_STEPS // 2)
    convert_point = partial(convert, category, from_unit=from_unit, to_unit=to_unit, rates=rates)
    points: List[Dict[str, float]] = []
    for index in range(CHART_STEPS + 1):
        x = index * step
        y = convert_point(x)
        points.append({"x": x, "y": y if y is not None else 0.0})
    return points


__all__ = [
    "NO_RESULT",
    "RATES_LOADING",
    "convert_linear",
    "convert_temperature",
    "convert_with_rates",
    "convert",
    "describe_conversion",
    "parse_input",
    "format_result",
    "conversion_table",
    "chart_points",
]

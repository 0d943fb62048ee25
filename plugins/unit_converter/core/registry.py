"""Static unit categories and their base-relative factor tables."""

from __future__ import annotations

import math
from enum import Enum
from typing import Dict, List, Mapping, Optional


class UnitCategory(str, Enum):
    """Unit categories in display order."""

    LENGTH = "Length"
    AREA = "Area"
    VOLUME = "Volume"
    MASS = "Mass"
    TEMPERATURE = "Temperature"
    CURRENCY = "Currency"
    SPEED = "Speed"
    TIME = "Time"
    ENERGY = "Energy"
    PRESSURE = "Pressure"

    @classmethod
    def parse(cls, name: object) -> Optional["UnitCategory"]:
        """Resolve a display name (case-insensitive) or return ``None``."""

        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            return None
        text = name.strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return None


# Each factor is "how many of this unit equal one base unit".
FACTOR_TABLES: Dict[UnitCategory, Dict[str, float]] = {
    UnitCategory.LENGTH: {
        "meters": 1.0,
        "feet": 3.28084,
        "inches": 39.3701,
        "kilometers": 0.001,
        "miles": 0.000621371,
        "yards": 1.09361,
    },
    UnitCategory.AREA: {
        "square meters": 1.0,
        "square feet": 10.7639,
        "square inches": 1550.0,
        "square kilometers": 0.000001,
        "square miles": 3.861e-7,
        "acres": 0.000247105,
        "hectares": 0.0001,
    },
    UnitCategory.VOLUME: {
        "cubic meters": 1.0,
        "cubic feet": 35.3147,
        "liters": 1000.0,
        "gallons": 264.172,
        "milliliters": 1000000.0,
    },
    UnitCategory.MASS: {
        "kilograms": 1.0,
        "pounds": 2.20462,
        "grams": 1000.0,
        "ounces": 35.274,
        "tons": 0.001,
    },
    UnitCategory.SPEED: {
        "meters per second": 1.0,
        "kilometers per hour": 3.6,
        "miles per hour": 2.23694,
        "knots": 1.94384,
        "feet per second": 3.28084,
    },
    UnitCategory.TIME: {
        "seconds": 1.0,
        "minutes": 0.0166667,
        "hours": 0.000277778,
        "days": 0.0000115741,
        "weeks": 0.00000165344,
        "months": 3.8052e-7,
        "years": 3.171e-8,
    },
    UnitCategory.ENERGY: {
        "joules": 1.0,
        "calories": 0.239006,
        "kilocalories": 0.000239006,
        "watt hours": 0.000277778,
        "kilowatt hours": 2.778e-7,
        "electron volts": 6.242e18,
        "BTU": 0.000947817,
    },
    UnitCategory.PRESSURE: {
        "pascals": 1.0,
        "atmospheres": 9.869e-6,
        "bars": 0.00001,
        "psi": 0.000145038,
        "torr": 0.00750062,
        "millimeters of mercury": 0.00750062,
    },
}

LINEAR_CATEGORIES: tuple[UnitCategory, ...] = tuple(FACTOR_TABLES.keys())

TEMPERATURE_UNITS: tuple[str, ...] = ("Celsius", "Fahrenheit", "Kelvin")

DEFAULT_CURRENCIES: tuple[str, ...] = ("USD", "EUR", "GBP", "JPY", "CAD", "AUD")

AVAILABLE_CURRENCIES: tuple[str, ...] = (
    "USD", "EUR", "GBP", "JPY", "AUD", "CAD", "CHF", "CNY", "HKD", "NZD",
    "SEK", "KRW", "SGD", "NOK", "MXN", "INR", "RUB", "ZAR", "TRY", "BRL",
    "TWD", "DKK", "PLN", "THB", "IDR", "HUF", "CZK", "ILS", "CLP", "PHP",
)


def validate_tables(tables: Mapping[UnitCategory, Mapping[str, float]]) -> None:
    """Raise ``ValueError`` unless every table has a 1.0 base and positive finite factors."""

    for category, table in tables.items():
        if not table:
            raise ValueError(f"{category.value} has no units.")
        if not any(factor == 1.0 for factor in table.values()):
            raise ValueError(f"{category.value} has no base unit with factor 1.0.")
        for unit, factor in table.items():
            if not math.isfinite(factor) or factor <= 0:
                raise ValueError(
                    f"{category.value} unit '{unit}' has invalid factor {factor!r}."
                )


def base_unit(category: UnitCategory) -> Optional[str]:
    if category is UnitCategory.TEMPERATURE:
        return "Celsius"
    if category is UnitCategory.CURRENCY:
        return "USD"
    table = FACTOR_TABLES[category]
    return next(unit for unit, factor in table.items() if factor == 1.0)


def list_categories() -> List[str]:
    return [category.value for category in UnitCategory]


def list_units(category: UnitCategory) -> List[str]:
    """Return the ordered unit names offered for ``category``."""

    if category is UnitCategory.TEMPERATURE:
        return list(TEMPERATURE_UNITS)
    if category is UnitCategory.CURRENCY:
        return list(DEFAULT_CURRENCIES)
    return list(FACTOR_TABLES[category].keys())


def next_category(current: UnitCategory, *, forward: bool = True) -> UnitCategory:
    """Return the neighbouring category, wrapping around at either end."""

    members = list(UnitCategory)
    index = members.index(current)
    step = 1 if forward else -1
    return members[(index + step) % len(members)]


validate_tables(FACTOR_TABLES)


__all__ = [
    "UnitCategory",
    "FACTOR_TABLES",
    "LINEAR_CATEGORIES",
    "TEMPERATURE_UNITS",
    "DEFAULT_CURRENCIES",
    "AVAILABLE_CURRENCIES",
    "validate_tables",
    "base_unit",
    "list_categories",
    "list_units",
    "next_category",
]

"""Facade for the unit converter core utilities."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from .converter import (
    NO_RESULT,
    RATES_LOADING,
    chart_points,
    conversion_table,
    convert,
    convert_linear,
    convert_temperature,
    convert_with_rates,
    describe_conversion,
    format_result,
    parse_input,
)
from .currency import (
    CurrencyError,
    RateCache,
    RateService,
    RateSnapshot,
)
from .registry import (
    AVAILABLE_CURRENCIES,
    UnitCategory,
    list_categories,
    list_units,
    next_category,
)
from .settings import CurrencySettings, load_settings


class UnknownCategoryError(ValueError):
    """Raised when a category name does not match any :class:`UnitCategory`."""


def resolve_category(name: object) -> UnitCategory:
    category = UnitCategory.parse(name)
    if category is None:
        raise UnknownCategoryError(f"Unknown unit category '{name}'.")
    return category


def _rates_for(category: UnitCategory, rate_service: Optional[RateService]):
    if category is UnitCategory.CURRENCY and rate_service is not None:
        return rate_service.rates()
    return None


def list_catalog() -> Dict[str, List[str]]:
    """Return the ordered unit names for every category."""

    return {name: list_units(UnitCategory(name)) for name in list_categories()}


def convert_request(
    category: UnitCategory,
    value: object,
    from_unit: str,
    to_unit: str,
    *,
    rate_service: Optional[RateService] = None,
) -> Dict[str, object]:
    """Convert raw user input and describe the conversion for display."""

    rates = _rates_for(category, rate_service)
    number = parse_input(value)
    result = None
    if number is not None:
        result = convert(category, number, from_unit, to_unit, rates=rates)
    return {
        "category": category.value,
        "input": number,
        "value": result,
        "formatted": format_result(result),
        "equation": describe_conversion(category, from_unit, to_unit, rates=rates),
    }


def table_request(
    category: UnitCategory,
    value: object,
    from_unit: str,
    *,
    rate_service: Optional[RateService] = None,
) -> List[Dict[str, object]]:
    number = parse_input(value)
    if number is None:
        return []
    return conversion_table(
        category, number, from_unit, rates=_rates_for(category, rate_service)
    )


def chart_request(
    category: UnitCategory,
    value: object,
    from_unit: str,
    to_unit: str,
    *,
    rate_service: Optional[RateService] = None,
) -> List[Dict[str, float]]:
    number = parse_input(value)
    if number is None:
        return []
    return chart_points(
        category, number, from_unit, to_unit, rates=_rates_for(category, rate_service)
    )


def build_rate_service(raw: Mapping[str, object] | None, *, root) -> RateService:
    return RateService(load_settings(raw, root=root))


__all__ = [
    "AVAILABLE_CURRENCIES",
    "NO_RESULT",
    "RATES_LOADING",
    "CurrencyError",
    "CurrencySettings",
    "RateCache",
    "RateService",
    "RateSnapshot",
    "UnitCategory",
    "UnknownCategoryError",
    "build_rate_service",
    "chart_request",
    "convert",
    "convert_linear",
    "convert_request",
    "convert_temperature",
    "convert_with_rates",
    "describe_conversion",
    "format_result",
    "list_catalog",
    "list_categories",
    "list_units",
    "next_category",
    "parse_input",
    "resolve_category",
    "table_request",
]

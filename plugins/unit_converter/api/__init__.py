"""Unit converter API with standardized responses."""

from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeout

from flask import Blueprint, Response, current_app, request

from common.errors import PendingAppError, UpstreamAppError, ValidationAppError
from common.responses import fail, ok
from common.validation import Name, SchemaModel, ValidationError, parse_model

from ..core import (
    RateService,
    UnitCategory,
    UnknownCategoryError,
    chart_request,
    convert_request,
    list_catalog,
    list_categories,
    list_units,
    resolve_category,
    table_request,
)


class TablePayload(SchemaModel):
    category: Name
    value: float | int | str
    from_unit: Name


class ConvertPayload(TablePayload):
    to_unit: Name


api_bp = Blueprint("unit_converter_api", __name__, url_prefix="/api/unit_converter")


def _rate_service() -> RateService | None:
    return current_app.extensions.get("rate_service")


def _invalid_request(exc: ValidationError) -> Response:
    return fail(
        ValidationAppError(
            message=str(exc),
            code="unit.invalid_request",
            details={"errors": getattr(exc, "details", None)},
        )
    )


def _invalid_category(exc: UnknownCategoryError) -> Response:
    return fail(ValidationAppError(message=str(exc), code="unit.invalid_category"))


def _rates_meta(category: UnitCategory) -> dict | None:
    service = _rate_service()
    if category is not UnitCategory.CURRENCY or service is None:
        return None
    status = service.status()
    return {
        "rates_state": status["state"],
        "is_loading": status["is_loading"],
        "last_error": status["last_error"],
        "last_updated_text": status["last_updated_text"],
    }


@api_bp.get("/categories")
def categories() -> Response:
    data = {"categories": list_categories(), "units": list_catalog()}
    return ok(data)


@api_bp.get("/units/<category>")
def units_endpoint(category: str) -> Response:
    try:
        resolved = resolve_category(category)
    except UnknownCategoryError as exc:
        return _invalid_category(exc)
    return ok({"category": resolved.value, "units": list_units(resolved)})


@api_bp.post("/convert")
def convert_endpoint() -> Response:
    raw_payload = request.get_json(silent=True) or {}
    try:
        payload = parse_model(ConvertPayload, raw_payload)
        category = resolve_category(payload.category)
    except ValidationError as exc:
        return _invalid_request(exc)
    except UnknownCategoryError as exc:
        return _invalid_category(exc)
    result = convert_request(
        category,
        payload.value,
        payload.from_unit,
        payload.to_unit,
        rate_service=_rate_service(),
    )
    return ok(result, meta=_rates_meta(category))


@api_bp.post("/table")
def table_endpoint() -> Response:
    raw_payload = request.get_json(silent=True) or {}
    try:
        payload = parse_model(TablePayload, raw_payload)
        category = resolve_category(payload.category)
    except ValidationError as exc:
        return _invalid_request(exc)
    except UnknownCategoryError as exc:
        return _invalid_category(exc)
    rows = table_request(
        category, payload.value, payload.from_unit, rate_service=_rate_service()
    )
    return ok({"category": category.value, "from_unit": payload.from_unit, "rows": rows})


@api_bp.post("/chart")
def chart_endpoint() -> Response:
    raw_payload = request.get_json(silent=True) or {}
    try:
        payload = parse_model(ConvertPayload, raw_payload)
        category = resolve_category(payload.category)
    except ValidationError as exc:
        return _invalid_request(exc)
    except UnknownCategoryError as exc:
        return _invalid_category(exc)
    points = chart_request(
        category,
        payload.value,
        payload.from_unit,
        payload.to_unit,
        rate_service=_rate_service(),
    )
    return ok({"points": points})


def _require_service() -> RateService:
    service = _rate_service()
    if service is None:  # pragma: no cover - create_app always installs one
        raise RuntimeError("Rate service is not configured.")
    return service


@api_bp.get("/rates/status")
def rates_status() -> Response:
    return ok(_require_service().status())


@api_bp.post("/rates/refresh")
def rates_refresh() -> Response:
    service = _require_service()
    try:
        snapshot = service.refresh().result(current_app.config["RATES_REFRESH_WAIT_SECONDS"])
    except FutureTimeout:
        return fail(
            PendingAppError(
                message="Exchange rate refresh is still running.",
                code="currency.refresh_pending",
            )
        )
    error = service.last_error
    if snapshot is None and error is not None:
        return fail(
            UpstreamAppError.from_exception(
                error, namespace="currency", details={"status": service.status()}
            )
        )
    return ok(service.status())


@api_bp.post("/rates/dismiss")
def rates_dismiss() -> Response:
    service = _require_service()
    service.dismiss_error()
    return ok(service.status())


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "categories",
    "units_endpoint",
    "convert_endpoint",
    "table_endpoint",
    "chart_endpoint",
    "rates_status",
    "rates_refresh",
    "rates_dismiss",
]

"""Validation primitives for plugin APIs."""

from __future__ import annotations

from typing import Annotated, Any, Mapping, TypeVar

import pydantic
from pydantic import BaseModel, StringConstraints


class ValidationError(ValueError):
    """Raised when validation fails."""

    def __init__(self, message: str, *, details: Any | None = None):
        super().__init__(message)
        self.details = details


class SchemaModel(BaseModel):
    """Strict base model for request/response validation."""

    model_config = pydantic.ConfigDict(extra="forbid", str_strip_whitespace=True)


# Unit, currency and category names share the same bounds.
Name = Annotated[str, StringConstraints(min_length=1, max_length=64)]

TModel = TypeVar("TModel", bound=SchemaModel)


def parse_model(model: type[TModel], payload: Mapping[str, Any] | None) -> TModel:
    payload = payload or {}
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        details = exc.errors(include_url=False, include_context=False)
        raise ValidationError("Invalid request payload", details=details) from exc


__all__ = ["Name", "ValidationError", "SchemaModel", "parse_model"]

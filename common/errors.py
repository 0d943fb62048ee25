"""Error envelopes shared by the plugin APIs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

UPSTREAM_STATUS = 502


@dataclass(slots=True)
class AppError(Exception):
    """Failure reported to the client as ``{"code", "message", "details"}``."""

    message: str
    code: str = "error"
    status_code: int = 400
    details: Mapping[str, Any] | None = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details or {}),
        }


@dataclass(slots=True)
class ValidationAppError(AppError):
    """Malformed request payload or unknown category."""

    code: str = "validation_error"
    status_code: int = 400


@dataclass(slots=True)
class NotFoundAppError(AppError):
    code: str = "not_found"
    status_code: int = 404


@dataclass(slots=True)
class UpstreamAppError(AppError):
    """A remote dependency, such as the exchange-rate provider, failed.

    Build it with :meth:`from_exception` from any exception exposing a
    ``code`` and an optional ``http_status``; the envelope code becomes
    ``<namespace>.<code>``.
    """

    code: str = "upstream_error"
    status_code: int = UPSTREAM_STATUS

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        *,
        namespace: str,
        details: Mapping[str, Any] | None = None,
    ) -> "UpstreamAppError":
        code = getattr(exc, "code", None) or type(exc).__name__
        status = getattr(exc, "http_status", None) or UPSTREAM_STATUS
        message = getattr(exc, "message", None) or str(exc) or code
        return cls(
            message=message,
            code=f"{namespace}.{code}",
            status_code=int(status),
            details=details,
        )


@dataclass(slots=True)
class PendingAppError(AppError):
    """Background work did not finish within the request's wait budget."""

    code: str = "pending"
    status_code: int = 504


@dataclass(slots=True)
class InternalAppError(AppError):
    """Generic internal error wrapper to avoid leaking implementation details."""

    code: str = "internal_error"
    status_code: int = 500


__all__ = [
    "AppError",
    "ValidationAppError",
    "NotFoundAppError",
    "UpstreamAppError",
    "PendingAppError",
    "InternalAppError",
]

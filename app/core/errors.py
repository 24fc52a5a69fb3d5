"""Domain error taxonomy shared by services and the HTTP layer."""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    kind = "DOMAIN_ERROR"
    http_status = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details:
            out["details"] = self.details
        return out


class ValidationError(DomainError):
    kind = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        super().__init__(message, details)
        self.field = field


class ForbiddenError(DomainError):
    kind = "FORBIDDEN"
    http_status = 403


class InvalidStateError(DomainError):
    kind = "INVALID_STATE"
    http_status = 409


class NotFoundError(DomainError):
    kind = "NOT_FOUND"
    http_status = 404


class QuotaExceededError(DomainError):
    kind = "QUOTA_EXCEEDED"
    http_status = 403

    def __init__(self, resource: str, current: int, maximum: int | None, requested: int = 1):
        super().__init__(
            f"Plan limit reached for {resource} ({current}/{maximum}). Upgrade your plan to add more.",
            {"resource": resource, "current": current, "max": maximum, "requested": requested},
        )
        self.resource = resource
        self.current = current
        self.maximum = maximum

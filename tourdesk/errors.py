from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class FieldViolation:
    field: str
    msg: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"field": self.field, "msg": self.msg}
        if self.value is not None:
            payload["value"] = self.value
        return payload


@dataclass
class AppError(Exception):
    code: str
    message: str
    status_code: int
    errors: list[FieldViolation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            payload["errors"] = [violation.to_dict() for violation in self.errors]
        return payload


class ValidationError(AppError):
    def __init__(self, errors: list[FieldViolation], message: str = "Validation failed"):
        super().__init__(code="VALIDATION_FAILED", message=message, status_code=400, errors=list(errors))

    @classmethod
    def single(cls, field_name: str, msg: str, value: Any = None) -> "ValidationError":
        return cls([FieldViolation(field=field_name, msg=msg, value=value)], message=msg)


class ConflictError(AppError):
    def __init__(self, message: str, field_name: Optional[str] = None):
        errors = [FieldViolation(field=field_name, msg=message)] if field_name else []
        super().__init__(code="CONFLICT", message=message, status_code=400, errors=errors)


class NotFoundError(AppError):
    def __init__(self, message: str):
        super().__init__(code="NOT_FOUND", message=message, status_code=404)


class UnexpectedError(AppError):
    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(code="UNEXPECTED", message=message, status_code=500)
        self.detail = detail

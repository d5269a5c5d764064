"""Infrastructure errors — raised by data-source adapters while executing a query."""

from __future__ import annotations

from typing import Any

from pageable.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Data-source failure that is not an input validation problem."""

    default_code = "infrastructure_error"


class UnknownFieldError(InfrastructureError):
    """A filter, sort, projection or join referenced a field the source does not know."""

    default_code = "unknown_field"

    def __init__(self, field: str, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            message or f"Unknown field '{field}'",
            detail={"field": field},
            **kwargs,
        )
        self.field = field


class InvalidOperandError(InfrastructureError):
    """A filter operand could not be converted to the field's type."""

    default_code = "invalid_operand"

    def __init__(self, field: str, operand: object, **kwargs: Any) -> None:
        super().__init__(
            f"Invalid operand {operand!r} for field '{field}'",
            detail={"field": field, "operand": operand},
            **kwargs,
        )
        self.field = field
        self.operand = operand


__all__ = ["InfrastructureError", "InvalidOperandError", "UnknownFieldError"]

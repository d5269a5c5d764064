"""FastAPI adapter – FastAPIExceptionMapper."""
from __future__ import annotations

from typing import Any, Callable

from fastapi.responses import JSONResponse

from pageable.kernel.errors import (
    BaseError,
    ConfigError,
    InfrastructureError,
    InvalidOperandError,
    UnknownFieldError,
)
from pageable.observability.logging import get_logger

logger = get_logger(__name__)


class FastAPIExceptionMapper:
    """Register pageable error → HTTP status-code mappings on a FastAPI app.

    Error body schema::

        {"code": "unknown_field", "message": "...", "detail": {...}}

    Mappings
    --------
    ``UnknownFieldError``   → 400
    ``InvalidOperandError`` → 400
    ``InfrastructureError`` → 503
    ``ConfigError``         → 500
    """

    def __init__(self) -> None:
        # ORDER MATTERS: more-specific subtypes first
        self._map: list[tuple[type[Exception], int]] = [
            (UnknownFieldError, 400),
            (InvalidOperandError, 400),
            (InfrastructureError, 503),
            (ConfigError, 500),
        ]

    def register(self, app: Any) -> None:
        """Register all error handlers on a ``FastAPI`` or ``Starlette`` app."""
        for exc_type, status in self._map:
            app.add_exception_handler(exc_type, self._handler(status))

    @staticmethod
    def _handler(status: int) -> Callable[[Any, Any], Any]:
        def handler(request: Any, exc: Any) -> Any:
            if isinstance(exc, BaseError):
                body = exc.to_dict(include_cause=False)
            else:
                body = {"code": "error", "message": str(exc), "detail": {}}
            logger.warning("list_query_failed", status=status, code=body["code"], path=request.url.path)
            return JSONResponse(status_code=status, content=body)

        return handler


__all__ = ["FastAPIExceptionMapper"]

"""Observability – structured logging helpers."""
from pageable.observability.logging.factory import JsonLoggerFactory
from pageable.observability.logging.processors import get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]

"""Application pagination – coercion of raw query values.

Every function returns ``None`` for anything it cannot accept; callers fall
back to a default and never see an exception.
"""
from __future__ import annotations

import re
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

# Largest integer a JSON client can represent exactly.
MAX_SAFE_INTEGER = 2**53 - 1

_INT_RE = re.compile(r"^[+-]?[0-9]{1,32}(?:\.0*)?$")

E = TypeVar("E", bound=Enum)


def first_value(value: Any) -> Any:
    """Collapse a repeated query value to its first element."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def as_list(value: Any) -> list[Any]:
    """Normalise a raw query value to a list (``None`` → ``[]``)."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def coerce_int(value: Any, *, minimum: int | None = None, maximum: int | None = None) -> int | None:
    """Coerce *value* to an integer inside ``[minimum, maximum]``."""
    value = first_value(value)
    result: int | None = None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if value.is_integer():
            result = int(value)
    elif isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            result = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if _INT_RE.match(text):
            result = int(Decimal(text))
    if result is None or abs(result) > MAX_SAFE_INTEGER:
        return None
    if minimum is not None and result < minimum:
        return None
    if maximum is not None and result > maximum:
        return None
    return result


def coerce_bool(value: Any) -> bool | None:
    """Accept a real ``bool`` or exactly ``"true"`` / ``"false"``."""
    value = first_value(value)
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def coerce_enum(value: Any, enum_cls: type[E]) -> E | None:
    """Match *value* case-insensitively against the values of *enum_cls*."""
    value = first_value(value)
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    for member in enum_cls:
        if str(member.value).lower() == lowered:
            return member
    return None


def coerce_str(value: Any) -> str | None:
    """Accept a non-empty string."""
    value = first_value(value)
    if isinstance(value, str) and value:
        return value
    return None


__all__ = [
    "MAX_SAFE_INTEGER",
    "as_list",
    "coerce_bool",
    "coerce_enum",
    "coerce_int",
    "coerce_str",
    "first_value",
]

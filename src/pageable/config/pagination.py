"""Config – process-wide pagination settings."""
from __future__ import annotations

import dataclasses
from typing import ClassVar

from pageable.config.settings.base import Settings
from pageable.kernel.errors import InvalidSettingValueError

DEFAULT_PAGE = 1
DEFAULT_SIZE = 10
DEFAULT_MAX_SIZE = 100
DEFAULT_OPERAND_SEPARATOR = ":"


@dataclasses.dataclass(frozen=True)
class PaginationSettings(Settings):
    """Library-level defaults, the first tier of the query merge.

    ``max_size=None`` disables the page-size ceiling.
    """

    _prefix: ClassVar[str] = "PAGINATION"

    default_size: int = DEFAULT_SIZE
    max_size: int | None = DEFAULT_MAX_SIZE
    enable_size: bool = True
    enable_sort: bool = True
    enable_unpaged: bool = False
    operand_separator: str = DEFAULT_OPERAND_SEPARATOR

    def _validate(self) -> None:
        if self.max_size is not None and self.max_size <= 0:
            # env loaders express "disabled" as 0
            object.__setattr__(self, "max_size", None)
        if self.default_size < 1:
            raise InvalidSettingValueError("default_size", self.default_size, "must be >= 1")
        if self.max_size is not None and self.default_size > self.max_size:
            raise InvalidSettingValueError(
                "default_size", self.default_size, f"exceeds max_size {self.max_size}"
            )
        if not self.operand_separator:
            raise InvalidSettingValueError("operand_separator", self.operand_separator, "must not be empty")


DEFAULT_SETTINGS = PaginationSettings()

__all__ = [
    "DEFAULT_MAX_SIZE",
    "DEFAULT_OPERAND_SEPARATOR",
    "DEFAULT_PAGE",
    "DEFAULT_SETTINGS",
    "DEFAULT_SIZE",
    "PaginationSettings",
]

"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
from typing import ClassVar, Mapping, TypeVar

S = TypeVar("S", bound="Settings")


@dataclasses.dataclass(frozen=True)
class Settings:
    """Frozen settings read once at startup and shared by every request.

    Subclasses set ``_prefix`` to name their environment variables and
    override ``_validate`` for cross-field rules.
    """

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""

    @classmethod
    def from_env(cls: type[S], environ: Mapping[str, str] | None = None) -> S:
        """Load from ``{_prefix}_*`` variables; ``environ`` defaults to ``os.environ``."""
        from pageable.config.settings.loaders import EnvSettingsLoader

        return EnvSettingsLoader(environ).load(cls)


__all__ = ["Settings"]

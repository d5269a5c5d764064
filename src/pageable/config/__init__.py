"""Config – 12-factor settings and the pagination defaults built on them."""

from pageable.config.pagination import DEFAULT_SETTINGS, PaginationSettings
from pageable.config.settings import EnvSettingsLoader, Settings, SettingsLoader

__all__ = [
    "DEFAULT_SETTINGS",
    "EnvSettingsLoader",
    "PaginationSettings",
    "Settings",
    "SettingsLoader",
]

"""Config settings – 12-factor env-based configuration."""
from pageable.config.settings.base import Settings
from pageable.config.settings.loaders import EnvSettingsLoader, SettingsLoader

__all__ = ["EnvSettingsLoader", "Settings", "SettingsLoader"]

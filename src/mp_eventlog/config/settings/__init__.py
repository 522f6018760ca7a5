"""Config settings – 12-factor env-based configuration."""
from mp_eventlog.config.settings.base import Settings
from mp_eventlog.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "Settings", "SettingsLoader"]

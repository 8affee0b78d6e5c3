"""Config settings – 12-factor env-based configuration."""
from mp_auditlog.config.settings.audit import AuditLogSettings
from mp_auditlog.config.settings.base import Settings
from mp_auditlog.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["AuditLogSettings", "DotenvSettingsLoader", "EnvSettingsLoader", "Settings", "SettingsLoader"]

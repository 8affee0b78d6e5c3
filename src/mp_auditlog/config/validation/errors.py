"""Config validation errors."""
from typing import Any

from mp_auditlog.kernel.errors import ConfigurationError


class ConfigError(ConfigurationError):
    """Audit settings could not be loaded or failed validation."""
    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    """A required ``<PREFIX>_<FIELD>`` environment variable is absent."""
    default_code = "missing_required_setting"

    def __init__(self, setting_name: str) -> None:
        super().__init__(f"Required setting '{setting_name}' is missing")
        self.setting_name = setting_name

    def context(self) -> dict[str, Any]:
        return {"setting": self.setting_name}


class InvalidSettingValueError(ConfigError):
    """A setting is present but names an unknown persister, mode or strategy,
    or does not coerce to the field's type."""
    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str) -> None:
        super().__init__(
            f"Setting '{setting_name}' has invalid value {value!r}: {reason}"
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason

    def context(self) -> dict[str, Any]:
        return {"setting": self.setting_name, "value": self.value, "reason": self.reason}


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ai_diagnostics.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AI_DIAGNOSTICS_CONFIG"

LogLevel = Literal["DEBUG", "INFO", "WARN", "WARNING", "ERROR"]


class LogConfig(BaseModel):
    enabled: bool = False
    level: LogLevel = "WARNING"
    file: Path | None = None
    max_size: int = Field(default=1024 * 1024, gt=0, description="Bytes before rotation")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


class ReportConfig(BaseModel):
    """Values consumed by the rendering pipeline.

    Passed explicitly to every service; nothing reads configuration from
    module state.
    """

    before_lines: int = Field(default=2, ge=0, description="Context lines before a diagnostic")
    after_lines: int = Field(default=2, ge=0, description="Context lines after a diagnostic")
    max_line_length: int | None = Field(
        default=120, ge=10, description="Truncate longer lines, None disables"
    )
    show_line_numbers: bool = False
    file_header_format: str = "File: %s"
    sanitize_filenames: bool = True
    severity: int | None = Field(
        default=None, ge=1, le=4, description="Minimum severity kept by providers"
    )
    log: LogConfig = Field(default_factory=LogConfig)

    @field_validator("file_header_format")
    @classmethod
    def _single_placeholder(cls, value: str) -> str:
        stripped = value.replace("%%", "")
        if stripped.count("%s") != 1 or stripped.count("%") != 1:
            raise ValueError("file_header_format must contain exactly one %s placeholder")
        return value


_LEGACY_NOTICES: dict[str, str] = {
    "min_diagnostic_severity": "min_diagnostic_severity is deprecated. Use 'severity' instead.",
    "log": "Boolean 'log' is deprecated. Use a mapping with 'enabled' and 'level'.",
}


def check_deprecated_keys(raw: dict[str, Any]) -> list[str]:
    """List migration notices for legacy configuration keys.

    Args:
        raw: Configuration mapping as read from disk.

    Returns:
        Human readable notices, empty when nothing is deprecated.
    """

    notices: list[str] = []
    if "min_diagnostic_severity" in raw:
        notices.append(_LEGACY_NOTICES["min_diagnostic_severity"])
    if isinstance(raw.get("log"), bool):
        notices.append(_LEGACY_NOTICES["log"])
    return notices


def migrate_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Rewrite legacy keys into their current form.

    Args:
        raw: Configuration mapping possibly using legacy keys.

    Returns:
        New mapping, the input is left untouched.
    """

    migrated = dict(raw)
    if "min_diagnostic_severity" in migrated:
        legacy = migrated.pop("min_diagnostic_severity")
        migrated.setdefault("severity", legacy)
    if isinstance(migrated.get("log"), bool):
        migrated["log"] = {"enabled": migrated["log"], "level": "INFO"}
    return migrated


def build_config(raw: dict[str, Any] | None = None, **overrides: Any) -> ReportConfig:
    """Validate a raw mapping into a ReportConfig.

    Args:
        raw: Mapping read from a config file.
        overrides: Values taking precedence over ``raw``; ``None`` values are ignored.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: When validation fails.
    """

    data = dict(raw or {})
    for notice in check_deprecated_keys(data):
        logger.warning(notice)
    data = migrate_config(data)
    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ReportConfig.model_validate(data)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {errors}") from exc


def default_config_path() -> Path | None:
    env_value = os.getenv(CONFIG_ENV_VAR)
    return Path(env_value) if env_value else None


def load_config(path: str | Path | None = None, **overrides: Any) -> ReportConfig:
    """Load configuration from a YAML file.

    Args:
        path: YAML file to read. Falls back to ``AI_DIAGNOSTICS_CONFIG``; a
            missing path yields the defaults.
        overrides: Values taking precedence over the file contents.

    Returns:
        Validated configuration.

    Raises:
        ConfigError: When the file cannot be read or parsed or is invalid.
    """

    config_path = Path(path) if path is not None else default_config_path()
    raw: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to read config {config_path}: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config {config_path} must contain a mapping")
        raw = loaded
        logger.debug("Loaded configuration from %s", config_path)

    return build_config(raw, **overrides)

"""Configuration helpers for the bulk lead uploader."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_SOURCE = "Bulk Upload"

CONFIG_ENV_VAR = "LEAD_UPLOADER_CONFIG"
API_URL_ENV_VAR = "LEAD_UPLOADER_API_URL"
TOKEN_ENV_VAR = "LEAD_UPLOADER_TOKEN"


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Configuration file '{file_path}' could not be parsed: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


@dataclass
class ProgressSettings:
    """Tuning for the synthetic upload progress bar."""

    tick_seconds: float = 0.5
    min_step: float = 3.0
    max_step: float = 6.0
    ceiling: float = 92.0
    hold_seconds: float = 0.8


@dataclass
class UploaderSettings:
    """Resolved runtime settings for the CLI and desktop window."""

    base_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    timeout_seconds: Optional[float] = None
    default_source: str = DEFAULT_SOURCE
    preview_limit: int = 10
    progress: ProgressSettings = field(default_factory=ProgressSettings)

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "UploaderSettings":
        api = _section(config, "api")
        upload = _section(config, "upload")
        progress = _section(config, "progress")

        defaults = ProgressSettings()
        try:
            progress_settings = ProgressSettings(
                tick_seconds=float(progress.get("tick_seconds", defaults.tick_seconds)),
                min_step=float(progress.get("min_step", defaults.min_step)),
                max_step=float(progress.get("max_step", defaults.max_step)),
                ceiling=float(progress.get("ceiling", defaults.ceiling)),
                hold_seconds=float(progress.get("hold_seconds", defaults.hold_seconds)),
            )
            timeout = api.get("timeout_seconds")
            settings = cls(
                base_url=str(api.get("base_url") or DEFAULT_API_URL),
                token=api.get("token") or None,
                timeout_seconds=float(timeout) if timeout is not None else None,
                default_source=str(upload.get("default_source") or DEFAULT_SOURCE),
                preview_limit=int(upload.get("preview_limit", 10)),
                progress=progress_settings,
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid configuration value: {exc}") from exc

        if progress_settings.min_step > progress_settings.max_step:
            raise ConfigurationError("progress.min_step must not exceed progress.max_step")
        if not 0 < progress_settings.ceiling < 100:
            raise ConfigurationError("progress.ceiling must be between 0 and 100")
        return settings


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Configuration section '{name}' must be a mapping")
    return section


def resolve_settings(
    config_path: str | Path | None = None,
    *,
    api_url: Optional[str] = None,
    token: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> UploaderSettings:
    """Merge the configuration file, environment variables and explicit overrides."""

    env = os.environ if environ is None else environ
    config_path = config_path or env.get(CONFIG_ENV_VAR)

    config: Dict[str, Any] = {}
    if config_path:
        LOGGER.debug("Loading configuration from %s", config_path)
        config = load_configuration(config_path)
    settings = UploaderSettings.from_mapping(config)

    if env.get(API_URL_ENV_VAR):
        settings.base_url = env[API_URL_ENV_VAR]
    if env.get(TOKEN_ENV_VAR):
        settings.token = env[TOKEN_ENV_VAR]
    if api_url:
        settings.base_url = api_url
    if token:
        settings.token = token
    return settings


__all__ = [
    "ConfigurationError",
    "DEFAULT_API_URL",
    "DEFAULT_SOURCE",
    "ProgressSettings",
    "UploaderSettings",
    "load_configuration",
    "resolve_settings",
]

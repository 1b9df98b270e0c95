"""
Configuration loader for YAML files.

Loads and validates configuration from YAML files into Pydantic models.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import AppConfig


DEFAULT_CONFIG_PATH = Path("configs/app.yaml")

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base}: {self.details}" if self.details else base


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dictionary.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}",
            path=path,
            details=str(e),
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read {path}",
            path=path,
            details=str(e),
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping", path=path)
    return data


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in string values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    if isinstance(data, str):
        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default = match.group(2) or ""
            return os.environ.get(var_name, default)

        return _ENV_PATTERN.sub(replacer, data)
    elif isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


def _apply_env_credentials(config: AppConfig) -> AppConfig:
    """Fill missing API keys from the conventional environment variables."""
    if config.analyzer.api_key is None:
        key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
        if key:
            config.analyzer.api_key = key
    if config.notification.api_key is None:
        key = os.environ.get("RESEND_API_KEY")
        if key:
            config.notification.api_key = key
    return config


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load application configuration from YAML file.

    Args:
        path: Path to app.yaml (default: configs/app.yaml)
        expand_env: Whether to expand environment variables

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)

    # If file doesn't exist, return defaults
    if not path.exists():
        return _apply_env_credentials(AppConfig())

    data = _load_yaml_file(path)

    if expand_env:
        data = _expand_env_vars(data)

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid app configuration in {path}",
            path=path,
            details=str(e),
        ) from e

    return _apply_env_credentials(config)


def validate_config_file(path: Path | str) -> list[str]:
    """Validate a configuration file without loading.

    Returns:
        List of validation error messages (empty if valid)
    """
    path = Path(path)
    errors: list[str] = []

    try:
        data = _load_yaml_file(path)
    except ConfigError as e:
        errors.append(str(e))
        return errors

    try:
        AppConfig.model_validate(_expand_env_vars(data))
    except ValidationError as e:
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

    return errors


DEFAULT_APP_YAML = """\
# TenderWatch Configuration
# String values support ${VAR} and ${VAR:-default} expansion.

keywords:
  - Autodesk
  - Revit
  - AutoCAD
  - AEC Collection
  - Civil 3D
  - Adobe
  - Creative Cloud
  - Photoshop
  - Illustrator
  - Microsoft
  - Office 365
  - Azure
  - Trimble
  - SketchUp
  - D5 Render

sources:
  - id: maldives-gazette
    name: Maldives Gazette
    url: https://www.gazette.gov.mv/iulaan
  - id: srilanka-promise
    name: Sri Lanka Promise
    url: https://promise.lk/
  - id: sl-gazette
    name: Sri Lanka Gov Gazette
    url: http://documents.gov.lk/en/gazette.php

transport:
  timeout_seconds: 30
  min_content_length: 50
  # Without `strategies` the built-in chain is used: Direct, Jina Reader,
  # AllOrigins (Public). Setting TENDERWATCH_PROXY puts a self-hosted relay,
  # plain and over Jina, in front of it. An explicit list replaces the chain:
  # strategies:
  #   - name: Local Proxy
  #     kind: query
  #     endpoint: ${TENDERWATCH_PROXY}
  #   - name: Direct
  #     kind: direct
  #   - name: Jina Reader
  #     kind: prefix
  #     endpoint: https://r.jina.ai/
  #   - name: AllOrigins (Public)
  #     kind: envelope
  #     endpoint: https://api.allorigins.win/get?url=
  #     envelope_field: contents

analyzer:
  model: gemini-2.0-flash
  api_key: ${GEMINI_API_KEY:-}
  window_days: 30

notification:
  recipients:
    - tenders@example.com
  api_key: ${RESEND_API_KEY:-}
  from_address: TenderWatch <onboarding@resend.dev>
  open_mail_client: true

scan:
  mode: sequential
  max_concurrency: 4

scheduler:
  enabled: true
  cron: "0 10 * * *"
  timezone: UTC
  mode: concurrent

logging:
  level: INFO
  file: logs/tenderwatch.log
  json_format: true
  rich_console: true
"""


def write_default_config(path: Path | str = DEFAULT_CONFIG_PATH, force: bool = False) -> bool:
    """Write the default app.yaml. Returns False if it exists and force is off."""
    path = Path(path)
    if path.exists() and not force:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_APP_YAML, encoding="utf-8")
    return True

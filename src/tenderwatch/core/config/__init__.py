"""Configuration loading and validation."""

from .models import (
    # Enums
    StrategyKind,
    ExecutionMode,
    # Config models
    AppConfig,
    SourceConfig,
    StrategyConfig,
    TransportConfig,
    AnalyzerConfig,
    NotificationConfig,
    ScanConfig,
    SchedulerConfig,
    LoggingConfig,
)
from .loader import ConfigError, load_app_config, validate_config_file, write_default_config

__all__ = [
    # Enums
    "StrategyKind",
    "ExecutionMode",
    # Config models
    "AppConfig",
    "SourceConfig",
    "StrategyConfig",
    "TransportConfig",
    "AnalyzerConfig",
    "NotificationConfig",
    "ScanConfig",
    "SchedulerConfig",
    "LoggingConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_config_file",
    "write_default_config",
]

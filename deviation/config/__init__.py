"""Deviation configuration module."""

from deviation.config.run_config import (
    AlgorithmKind,
    ApiConfig,
    ConfigurationError,
    EntityKind,
    FilterSpec,
    ItemConfiguration,
    PastWeeksAlgorithm,
    RunConfiguration,
    SenderConfig,
    load_configuration,
    parse_configuration,
)
from deviation.config.settings import Settings, configure, get_settings, reset_settings

__all__ = [
    "AlgorithmKind",
    "ApiConfig",
    "ConfigurationError",
    "EntityKind",
    "FilterSpec",
    "ItemConfiguration",
    "PastWeeksAlgorithm",
    "RunConfiguration",
    "SenderConfig",
    "Settings",
    "configure",
    "get_settings",
    "load_configuration",
    "parse_configuration",
    "reset_settings",
]

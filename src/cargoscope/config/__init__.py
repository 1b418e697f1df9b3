"""Config module exports."""

from cargoscope.config.loader import load_config
from cargoscope.config.models import (
    CargoScopeConfig,
    DiscoveryConfig,
    LoggingConfig,
    OutputConfig,
    RunConfig,
    ToolchainConfig,
)

__all__ = [
    "load_config",
    "CargoScopeConfig",
    "DiscoveryConfig",
    "LoggingConfig",
    "OutputConfig",
    "RunConfig",
    "ToolchainConfig",
]

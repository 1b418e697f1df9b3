"""Core module exports."""

from cargoscope.core.errors import (
    ArtifactError,
    CargoScopeError,
    ConfigError,
    ErrorCode,
    TestTreeError,
    ToolchainError,
)
from cargoscope.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from cargoscope.core.progress import spinner, status

__all__ = [
    # Errors
    "ArtifactError",
    "CargoScopeError",
    "ConfigError",
    "ErrorCode",
    "TestTreeError",
    "ToolchainError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "spinner",
    "status",
]

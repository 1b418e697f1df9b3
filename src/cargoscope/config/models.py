"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CARGOSCOPE__SECTION__KEY)
3. Repo YAML (<workspace>/.cargoscope/config.yaml)
4. Global YAML (~/.config/cargoscope/config.yaml)
5. Built-in defaults (this file)

Examples:
    CARGOSCOPE__LOGGING__LEVEL=DEBUG
    CARGOSCOPE__TOOLCHAIN__CARGO_PATH=/opt/rust/bin/cargo
    CARGOSCOPE__OUTPUT__LINE_ENDING="\n"
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CARGOSCOPE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every stream line that is skipped.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ToolchainConfig(BaseModel):
    """Build tool location and working directory.

    Env vars:
        CARGOSCOPE__TOOLCHAIN__CARGO_PATH: Explicit cargo executable
        CARGOSCOPE__TOOLCHAIN__WORKSPACE_ROOT: Directory cargo runs in
    """

    cargo_path: str | None = Field(
        default=None,
        description="Explicit cargo executable. Skips CARGO env var, PATH and ~/.cargo/bin lookup.",
    )
    workspace_root: str | None = Field(
        default=None,
        description="Working directory for every cargo invocation. "
        "Defaults to the directory config was loaded from.",
    )


class DiscoveryConfig(BaseModel):
    """Arguments for the two discovery invocations."""

    build_args: list[str] = Field(
        default_factory=lambda: ["test", "-q", "--all-targets", "--workspace"],
        description="Phase A: build every test target without running it. "
        "'--no-run' and '--message-format=json' are appended automatically.",
    )
    list_args: list[str] = Field(
        default_factory=lambda: ["test", "--all-targets", "--workspace", "--", "--list"],
        description="Phase B: ask every test binary to list its tests.",
    )

    @field_validator("build_args", "list_args")
    @classmethod
    def validate_subcommand(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("argument list must start with a cargo subcommand")
        return v


class RunConfig(BaseModel):
    """Arguments for per-target test runs."""

    base_args: list[str] = Field(
        default_factory=lambda: ["test", "-q"],
        description="Prefix for every run; '--package' and the target selector follow.",
    )
    format_args: list[str] = Field(
        default_factory=lambda: ["-Zunstable-options", "--format=json"],
        description="Test harness flags requesting the JSON event stream. "
        "RISK: the JSON format is unstable in libtest and may change between toolchains.",
    )


class OutputConfig(BaseModel):
    """Rendering of text forwarded to the output log."""

    line_ending: str = Field(
        default="\r\n",
        description="Line terminator the output host expects.",
    )


class CargoScopeConfig(BaseModel):
    """Root configuration for CargoScope."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    run: RunConfig = Field(default_factory=RunConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

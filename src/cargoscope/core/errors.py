"""CargoScope error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 7xxx: Toolchain / Test
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Toolchain (70xx)
    TOOLCHAIN_LAUNCH_FAILED = 7001
    TOOLCHAIN_EXIT_STATUS = 7002

    # Artifacts / test tree (71xx)
    ARTIFACT_NONE = 7101
    ARTIFACT_MULTIPLE = 7102
    TEST_NODE_UNKNOWN = 7103


@dataclass(frozen=True, slots=True)
class CargoScopeError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'TOOLCHAIN_EXIT_STATUS')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CargoScopeError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ToolchainError(CargoScopeError):
    """Errors raised while spawning or waiting on the build tool."""

    @classmethod
    def launch_failed(cls, executable: str, reason: str) -> "ToolchainError":
        return cls(
            code=ErrorCode.TOOLCHAIN_LAUNCH_FAILED,
            message=f"could not launch cargo: {reason}",
            details={"executable": executable, "reason": reason},
        )

    @classmethod
    def exit_status(cls, args: list[str], exit_code: int) -> "ToolchainError":
        return cls(
            code=ErrorCode.TOOLCHAIN_EXIT_STATUS,
            message=f"exit code: {exit_code}.",
            details={"args": list(args), "exit_code": exit_code},
        )

    @property
    def exit_code(self) -> int | None:
        """Process exit code, or None when the process never started."""
        code: int | None = self.details.get("exit_code")
        return code


class ArtifactError(CargoScopeError):
    """Compilation artifact lookups that did not yield a single executable."""

    @classmethod
    def no_artifacts(cls) -> "ArtifactError":
        return cls(code=ErrorCode.ARTIFACT_NONE, message="No compilation artifacts")

    @classmethod
    def multiple_artifacts(cls, count: int) -> "ArtifactError":
        return cls(
            code=ErrorCode.ARTIFACT_MULTIPLE,
            message="Multiple compilation artifacts are not supported.",
            details={"count": count},
        )


class TestTreeError(CargoScopeError):
    """Lookups against the discovered test tree."""

    __test__ = False

    @classmethod
    def unknown_node(cls, uid: str) -> "TestTreeError":
        return cls(
            code=ErrorCode.TEST_NODE_UNKNOWN,
            message=f"Unknown test node: {uid}",
            details={"uid": uid},
        )

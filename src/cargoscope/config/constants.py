"""Protocol constants for cargo's machine-readable output.

These are wire-format facts, not user-configurable. For configurable
values, see models.py.
"""

# =============================================================================
# Compiler message stream (--message-format=json)
# =============================================================================

MESSAGE_FORMAT_JSON = "--message-format=json"
"""Appended to every artifact-producing invocation."""

NO_RUN = "--no-run"
"""Compile test targets without executing them."""

REASON_COMPILER_ARTIFACT = "compiler-artifact"
REASON_COMPILER_MESSAGE = "compiler-message"

CRATE_TYPE_BIN = "bin"
KIND_CUSTOM_BUILD = "custom-build"

# =============================================================================
# Test event stream (-Zunstable-options --format=json)
# =============================================================================

EVENT_TYPE_SUITE = "suite"
EVENT_TYPE_TEST = "test"

TEST_EVENT_STARTED = "started"
TEST_EVENT_OK = "ok"
TEST_EVENT_IGNORED = "ignored"
TEST_EVENT_FAILED = "failed"

# =============================================================================
# Test names
# =============================================================================

PATH_SEPARATOR = "::"
"""Separator between module path segments in a test name."""

SKIP_FLAG = "--skip"
"""Test harness flag excluding names that contain the following filter."""

TARGET_SELECTOR_FLAGS = {
    "lib": "--lib",
    "bin": "--bin",
    "example": "--example",
    "test": "--test",
    "bench": "--bench",
}
"""cargo flag selecting a single target of a package, by target kind."""

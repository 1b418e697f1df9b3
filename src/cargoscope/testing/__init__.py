"""Test discovery and execution for cargo workspaces."""

from cargoscope.testing.discovery import TestDiscovery
from cargoscope.testing.models import (
    DiscoveryResult,
    RunGroup,
    TestItem,
    TestNode,
    TestOutcome,
    TestTarget,
)
from cargoscope.testing.run import TestRun, TestRunOrchestrator
from cargoscope.testing.session import TestSession
from cargoscope.testing.tree import TestTree

__all__ = [
    "DiscoveryResult",
    "RunGroup",
    "TestDiscovery",
    "TestItem",
    "TestNode",
    "TestOutcome",
    "TestRun",
    "TestRunOrchestrator",
    "TestSession",
    "TestTarget",
    "TestTree",
]

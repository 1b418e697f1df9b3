"""Cargo toolchain access: path resolution, process spawning, artifacts."""

from cargoscope.toolchain.artifacts import (
    ArtifactCollector,
    ArtifactSpec,
    Cargo,
    CompilationArtifact,
    artifact_spec,
)
from cargoscope.toolchain.output import BufferedOutput, OutputSink
from cargoscope.toolchain.paths import (
    cargo_path,
    clear_executable_path_cache,
    get_path_for_executable,
)
from cargoscope.toolchain.process import ProcessRunner

__all__ = [
    "ArtifactCollector",
    "ArtifactSpec",
    "BufferedOutput",
    "Cargo",
    "CompilationArtifact",
    "OutputSink",
    "ProcessRunner",
    "artifact_spec",
    "cargo_path",
    "clear_executable_path_cache",
    "get_path_for_executable",
]

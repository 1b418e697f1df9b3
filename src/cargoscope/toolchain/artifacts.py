"""Compilation artifacts from cargo's JSON message stream.

``cargo build/test --message-format=json`` prints one JSON object per line.
Only two shapes matter here:

- ``compiler-artifact`` with a populated ``executable``: a linked binary.
- ``compiler-message``: a diagnostic whose ``rendered`` text is forwarded to
  the output log.

Everything else, including lines that are not JSON at all, is skipped.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from cargoscope.config.constants import (
    CRATE_TYPE_BIN,
    KIND_CUSTOM_BUILD,
    MESSAGE_FORMAT_JSON,
    NO_RUN,
    REASON_COMPILER_ARTIFACT,
    REASON_COMPILER_MESSAGE,
)
from cargoscope.core.errors import ArtifactError, ToolchainError
from cargoscope.core.logging import get_logger
from cargoscope.toolchain.output import OutputSink
from cargoscope.toolchain.process import ProcessRunner

log = get_logger("toolchain.artifacts")


@dataclass(frozen=True)
class CompilationArtifact:
    """An executable produced by one cargo build."""

    file_name: str
    package_name: str
    name: str
    kind: str
    is_test: bool


ArtifactFilter = Callable[[list[CompilationArtifact]], list[CompilationArtifact]]


@dataclass(frozen=True)
class ArtifactSpec:
    """Arguments for an artifact-producing cargo invocation plus a post-filter."""

    cargo_args: list[str]
    filter: ArtifactFilter | None = None

    def apply(self, artifacts: list[CompilationArtifact]) -> list[CompilationArtifact]:
        return self.filter(artifacts) if self.filter else artifacts


def _only_tests(artifacts: list[CompilationArtifact]) -> list[CompilationArtifact]:
    # An integration test crate yields both {"kind": "bin"} and {"kind": "test"}
    # artifacts; only the test harness build is wanted.
    return [a for a in artifacts if a.is_test]


def artifact_spec(args: Sequence[str]) -> ArtifactSpec:
    """Derive the cargo invocation that produces artifacts for ``args``.

    ``run`` becomes ``build``; ``test`` gains ``--no-run`` (once) and a
    filter keeping only test harness artifacts. ``--message-format=json`` is
    always appended.
    """
    cargo_args = [*args, MESSAGE_FORMAT_JSON]

    match cargo_args[0]:
        case "run":
            cargo_args[0] = "build"
        case "test":
            if NO_RUN not in cargo_args:
                cargo_args.append(NO_RUN)

    if cargo_args[0] == "test":
        return ArtifactSpec(cargo_args=cargo_args, filter=_only_tests)
    return ArtifactSpec(cargo_args=cargo_args)


def parse_artifact(message: dict[str, Any]) -> CompilationArtifact | None:
    """Build an artifact from a ``compiler-artifact`` message, if it is one we keep.

    Binaries are kept unless they are build scripts; anything compiled with
    the test profile is kept regardless of crate type.
    """
    executable = message.get("executable")
    if not executable:
        return None

    target = message.get("target") or {}
    profile = message.get("profile") or {}
    kinds: list[str] = target.get("kind") or []
    is_binary = CRATE_TYPE_BIN in (target.get("crate_types") or [])
    is_build_script = KIND_CUSTOM_BUILD in kinds
    is_test = bool(profile.get("test"))

    if not ((is_binary and not is_build_script) or is_test):
        return None

    return CompilationArtifact(
        file_name=executable,
        package_name=str(message.get("package_id", "")).split(" ")[0],
        name=target.get("name", ""),
        kind=kinds[0] if kinds else "",
        is_test=is_test,
    )


class ArtifactCollector:
    """Interprets one cargo invocation's stdout/stderr lines.

    Artifacts accumulate in :attr:`artifacts`; diagnostics and stderr go to
    the output sink.
    """

    def __init__(self, output: OutputSink, line_ending: str = "\r\n") -> None:
        self._output = output
        self._line_ending = line_ending
        self.artifacts: list[CompilationArtifact] = []

    def on_stdout(self, line: str) -> None:
        try:
            message = json.loads(line)
        except json.JSONDecodeError:
            log.debug("stream_line_skipped", line=line[:200])
            return
        if not isinstance(message, dict):
            return

        reason = message.get("reason")
        if reason == REASON_COMPILER_ARTIFACT:
            artifact = parse_artifact(message)
            if artifact is not None:
                log.debug(
                    "artifact_collected",
                    package=artifact.package_name,
                    target=artifact.name,
                    kind=artifact.kind,
                )
                self.artifacts.append(artifact)
        elif reason == REASON_COMPILER_MESSAGE:
            rendered = (message.get("message") or {}).get("rendered")
            if rendered:
                self._output.append(rendered.replace("\n", self._line_ending))

    def on_stderr(self, line: str) -> None:
        self._output.append(line + self._line_ending)


class Cargo:
    """Artifact enumeration on top of a :class:`ProcessRunner`."""

    def __init__(
        self,
        runner: ProcessRunner,
        output: OutputSink,
        *,
        line_ending: str = "\r\n",
    ) -> None:
        self._runner = runner
        self._output = output
        self._line_ending = line_ending

    @property
    def runner(self) -> ProcessRunner:
        return self._runner

    @property
    def output(self) -> OutputSink:
        return self._output

    async def get_artifacts(self, spec: ArtifactSpec) -> list[CompilationArtifact]:
        """Run ``spec`` and return its artifacts.

        A failing build (non-zero exit or launch failure) keeps whatever was
        collected before it failed.
        """
        collector = ArtifactCollector(self._output, self._line_ending)
        try:
            await self._runner.run(spec.cargo_args, collector.on_stdout, collector.on_stderr)
        except ToolchainError as e:
            log.warning(
                "artifact_build_failed",
                error=e.message,
                collected=len(collector.artifacts),
            )
        return spec.apply(collector.artifacts)

    async def artifacts_from_args(self, args: Sequence[str]) -> list[CompilationArtifact]:
        return await self.get_artifacts(artifact_spec(args))

    async def executable_from_args(self, args: Sequence[str]) -> str:
        """Build ``args`` and return the single executable it produced."""
        artifacts = await self.artifacts_from_args(args)
        if not artifacts:
            raise ArtifactError.no_artifacts()
        if len(artifacts) > 1:
            raise ArtifactError.multiple_artifacts(len(artifacts))
        return artifacts[0].file_name

"""Spawning cargo and streaming its output.

Two delivery modes:

- :meth:`ProcessRunner.run` hands stdout and stderr lines to separate
  callbacks as they arrive. Each stream is ordered; the interleaving
  between the two is not.
- :meth:`ProcessRunner.run_unified` appends both streams to one buffer in
  arrival order and dispatches the buffered lines only after the process
  exits.

Both raise :class:`ToolchainError` on launch failure or non-zero exit. Lines
are always dispatched before a non-zero exit is raised. If a line callback
raises, the child is killed and reaped before the exception propagates.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from pathlib import Path

from cargoscope.core.errors import ToolchainError
from cargoscope.core.logging import get_logger
from cargoscope.toolchain.paths import cargo_path

log = get_logger("toolchain.process")

LineCallback = Callable[[str], None]

_CHUNK_SIZE = 64 * 1024


def _decode_line(raw: bytes) -> str:
    return raw.decode(errors="replace").rstrip("\r\n")


class ProcessRunner:
    """Runs cargo with stdin closed and stdout/stderr captured."""

    def __init__(self, executable: str | None = None, cwd: Path | str | None = None) -> None:
        self._executable = executable
        self._cwd = Path(cwd) if cwd is not None else None

    @property
    def executable(self) -> str:
        """Configured executable, or the resolved cargo path."""
        return self._executable or cargo_path()

    @property
    def cwd(self) -> Path | None:
        return self._cwd

    async def _spawn(self, args: list[str]) -> asyncio.subprocess.Process:
        executable = self.executable
        log.debug("process_spawn", executable=executable, args=args, cwd=str(self._cwd))
        try:
            return await asyncio.create_subprocess_exec(
                executable,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self._cwd,
            )
        except OSError as e:
            raise ToolchainError.launch_failed(executable, str(e)) from e

    def _check_exit(self, args: list[str], exit_code: int) -> int:
        if exit_code != 0:
            log.debug("process_failed", args=args, exit_code=exit_code)
            raise ToolchainError.exit_status(args, exit_code)
        return exit_code

    async def _drain(self, proc: asyncio.subprocess.Process, *readers: Awaitable[None]) -> int:
        """Await every reader, then the exit code.

        If a reader or a line callback raises, the child is killed and
        reaped before the error propagates.
        """
        tasks = [asyncio.ensure_future(reader) for reader in readers]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
            await proc.wait()
            await asyncio.gather(*tasks, return_exceptions=True)
            log.debug("process_killed", pid=proc.pid, exit_code=proc.returncode)
            raise
        return await proc.wait()

    async def run(
        self,
        args: list[str],
        on_stdout: LineCallback,
        on_stderr: LineCallback,
    ) -> int:
        """Run cargo, delivering each output line as it arrives.

        Lines are split from raw chunks, so a single line of any length (a
        failing test's captured output, say) is delivered whole.
        """
        proc = await self._spawn(args)

        async def pump(stream: asyncio.StreamReader | None, callback: LineCallback) -> None:
            if stream is None:
                return
            pending = bytearray()
            while chunk := await stream.read(_CHUNK_SIZE):
                pending.extend(chunk)
                end = pending.rfind(b"\n")
                if end < 0:
                    continue
                complete = bytes(pending[:end])
                del pending[: end + 1]
                for raw in complete.split(b"\n"):
                    callback(_decode_line(raw))
            if pending:
                callback(_decode_line(bytes(pending)))

        exit_code = await self._drain(
            proc, pump(proc.stdout, on_stdout), pump(proc.stderr, on_stderr)
        )
        return self._check_exit(args, exit_code)

    async def run_unified(self, args: list[str], on_line: LineCallback) -> int:
        """Run cargo, then dispatch the merged stdout/stderr lines in arrival order."""
        proc = await self._spawn(args)
        merged = bytearray()

        async def collect(stream: asyncio.StreamReader | None) -> None:
            if stream is None:
                return
            while chunk := await stream.read(_CHUNK_SIZE):
                merged.extend(chunk)

        exit_code = await self._drain(proc, collect(proc.stdout), collect(proc.stderr))

        for line in merged.decode(errors="replace").split("\n"):
            on_line(line.rstrip("\r"))
        return self._check_exit(args, exit_code)

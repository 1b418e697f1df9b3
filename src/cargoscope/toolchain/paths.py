"""Executable path resolution for the Rust toolchain.

Lookup order for an executable ``name``:
1. Environment variable ``NAME`` (e.g. ``CARGO``)
2. ``name`` on PATH (``name.exe`` too on Windows)
3. ``~/.cargo/bin/name``
4. The bare ``name``, left for the OS to resolve at spawn time

Results are memoized per executable name for the lifetime of the process.
Nothing invalidates the cache implicitly; call
:func:`clear_executable_path_cache` after changing the environment.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path

from cargoscope.core.logging import get_logger

log = get_logger("toolchain.paths")

# Keyed by executable name ("cargo", "rustc", "rustup")
_executable_path_cache: dict[str, str] = {}


def clear_executable_path_cache() -> None:
    """Forget every resolved executable path."""
    _executable_path_cache.clear()


def get_path_for_executable(executable_name: str) -> str:
    """Resolve ``executable_name`` to a path (or bare name) to spawn."""
    if executable_name in _executable_path_cache:
        return _executable_path_cache[executable_name]

    resolved = _resolve(executable_name)
    _executable_path_cache[executable_name] = resolved
    log.debug("executable_resolved", executable=executable_name, path=resolved)
    return resolved


def cargo_path() -> str:
    return get_path_for_executable("cargo")


def _resolve(executable_name: str) -> str:
    env_value = os.environ.get(executable_name.upper())
    if env_value:
        return env_value

    if lookup_in_path(executable_name):
        return executable_name

    try:
        standard_path = Path.home() / ".cargo" / "bin" / executable_name
        if _is_file(standard_path):
            return str(standard_path)
    except RuntimeError as e:
        # Path.home() raises when no home directory can be determined
        log.error("home_lookup_failed", executable=executable_name, error=str(e))

    return executable_name


def lookup_in_path(executable_name: str) -> bool:
    """Check whether ``executable_name`` is a file in any PATH directory."""
    paths = os.environ.get("PATH", "")
    is_windows = platform.system() == "Windows"

    for dir_in_path in paths.split(os.pathsep):
        if not dir_in_path:
            continue
        candidate = Path(dir_in_path) / executable_name
        candidates = [candidate]
        if is_windows:
            candidates.append(candidate.with_name(f"{executable_name}.exe"))
        if any(_is_file(c) for c in candidates):
            return True
    return False


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False

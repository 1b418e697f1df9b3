"""CLI utilities."""

from pathlib import Path

import click

from cargoscope.config.loader import load_config
from cargoscope.core.errors import CargoScopeError, TestTreeError
from cargoscope.core.logging import configure_logging
from cargoscope.testing.models import TestNode
from cargoscope.testing.session import TestSession
from cargoscope.toolchain.output import OutputSink


def find_workspace_root(start_path: Path | None = None) -> Path:
    """Find the nearest directory holding a Cargo.toml, walking upwards.

    Raises:
        click.ClickException: If no Cargo.toml is found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    while True:
        if (current / "Cargo.toml").exists():
            return current
        if current == current.parent:
            break
        current = current.parent

    raise click.ClickException(
        f"No Cargo.toml found in {start_path} or any parent directory.\n"
        "cargoscope commands must be run from within a cargo workspace."
    )


def open_session(
    path: Path,
    output: OutputSink | None = None,
    *,
    verbose: bool = False,
) -> TestSession:
    """Load config for the workspace containing ``path`` and open a session."""
    workspace_root = find_workspace_root(path)
    try:
        config = load_config(workspace_root)
    except CargoScopeError as e:
        raise click.ClickException(e.message) from e
    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)
    return TestSession(config, output=output)


def resolve_nodes(session: TestSession, uids: tuple[str, ...]) -> list[TestNode]:
    """Map command-line node uids to tree nodes."""
    nodes: list[TestNode] = []
    for uid in uids:
        try:
            nodes.append(session.find(uid))
        except TestTreeError as e:
            raise click.ClickException(
                f"{e.message}. Run 'cargoscope discover' to list node ids."
            ) from e
    return nodes

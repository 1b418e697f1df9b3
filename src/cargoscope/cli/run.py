"""cargoscope run command - run tests and report per-node outcomes."""

import asyncio
import json
from pathlib import Path

import click

from cargoscope.cli.render import ConsoleOutput, render_tree, run_to_dict
from cargoscope.cli.utils import open_session, resolve_nodes
from cargoscope.core.progress import get_console, pluralize, spinner, status
from cargoscope.testing.run import TestRun
from cargoscope.testing.session import TestSession
from cargoscope.toolchain.output import BufferedOutput


async def _discover_and_run(
    session: TestSession,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
) -> TestRun:
    await session.discover()
    include_nodes = resolve_nodes(session, include) if include else None
    exclude_nodes = resolve_nodes(session, exclude)
    return await session.run(include_nodes, exclude_nodes)


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, path_type=Path))
@click.option("--include", "-i", multiple=True, help="Node id to run (repeatable)")
@click.option("--exclude", "-x", multiple=True, help="Node id to skip (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def run_command(
    ctx: click.Context,
    path: Path,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    as_json: bool,
) -> None:
    """Discover, then run tests of a cargo workspace.

    Without --include every target is run. Exits with status 1 when any
    test or target failed.
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    output = ConsoleOutput(get_console()) if verbose else BufferedOutput()
    session = open_session(path, output, verbose=verbose)

    with spinner("Running tests"):
        run = asyncio.run(_discover_and_run(session, include, exclude))

    if as_json:
        click.echo(json.dumps(run_to_dict(run), indent=2))
    else:
        get_console().print(render_tree(session.tree, run))
        failures = run.nodes_with_status("failed")
        for node in failures:
            outcome = run.outcome(node)
            status(node.uid, style="error")
            if outcome is not None and outcome.message:
                click.echo(outcome.message, err=True)
        failed = len(failures)
        passed = len(run.nodes_with_status("passed"))
        status(
            f"{pluralize(passed, 'node')} passed, {failed} failed",
            style="error" if failed else "success",
        )

    if run.has_failures:
        ctx.exit(1)

"""cargoscope discover command - build and list every test."""

import asyncio
import json
from pathlib import Path

import click

from cargoscope.cli.render import ConsoleOutput, render_tree, tree_to_dict
from cargoscope.cli.utils import open_session
from cargoscope.core.progress import get_console, pluralize, spinner, status
from cargoscope.toolchain.output import BufferedOutput


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def discover_command(ctx: click.Context, path: Path, as_json: bool) -> None:
    """Discover the tests of a cargo workspace.

    PATH is any directory inside the workspace (default: current directory).
    Node ids printed here are accepted by 'cargoscope run --include/--exclude'.
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    output = ConsoleOutput(get_console()) if verbose else BufferedOutput()
    session = open_session(path, output, verbose=verbose)

    with spinner("Building and listing tests"):
        result = asyncio.run(session.discover())

    if as_json:
        click.echo(json.dumps(tree_to_dict(session.tree), indent=2))
        return

    get_console().print(render_tree(session.tree))
    style = "success" if result.targets else "warning"
    status(
        f"Discovered {pluralize(result.tests, 'test')} in {pluralize(result.targets, 'target')}",
        style=style,
    )

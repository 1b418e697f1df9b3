"""CargoScope CLI - cargoscope command."""

from importlib.metadata import version

import click

from cargoscope.cli.discover import discover_command
from cargoscope.cli.run import run_command
from cargoscope.core.logging import configure_logging


@click.group()
@click.version_option(version=version("cargoscope"), prog_name="cargoscope")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging and show cargo output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """CargoScope - discover and run the tests of a cargo workspace."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(discover_command, name="discover")
cli.add_command(run_command, name="run")


if __name__ == "__main__":
    cli()

"""dualforge CLI entry point."""

import typer

from dualforge import __version__
from dualforge.cli.correlate_cmd import correlate
from dualforge.cli.validate_cmd import validate

app = typer.Typer(
    name="dualforge",
    help="Differential contract-test harness for EVM and zk backends",
    no_args_is_help=True,
)

app.command()(correlate)
app.command()(validate)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dualforge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Differential contract-test harness for EVM and zk backends."""

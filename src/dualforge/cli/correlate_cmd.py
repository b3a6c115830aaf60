"""dualforge correlate -- pair EVM and zk artifacts and show the result.

Loads both artifact sets, runs the correlator, and renders the dual
records as a Rich table or JSON. Sparse results are reported, and only
treated as failure under --strict.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from dualforge.execution.correlator import NAME_SEPARATOR, correlate as correlate_sets
from dualforge.loader.artifacts import load_artifact_set
from dualforge.log import init_logging
from dualforge.models.artifacts import DualCompiledContract

console = Console(stderr=True)


def render_dual_table(contracts: list[DualCompiledContract], console: Console) -> None:
    """Render correlated contracts as a table, sorted by name."""
    table = Table(box=box.SIMPLE, show_header=True)
    table.add_column("Contract", style="bold")
    table.add_column("EVM hash")
    table.add_column("zk hash")
    table.add_column("EVM size", justify="right")
    table.add_column("zk size", justify="right")

    for contract in sorted(contracts, key=lambda c: c.name):
        summary = contract.summary()
        table.add_row(
            summary["name"],
            summary["evm_bytecode_hash"][:18] + "…",
            summary["zk_bytecode_hash"][:18] + "…",
            str(summary["evm_deployed_size"]),
            str(summary["zk_deployed_size"]),
        )
    console.print(table)


def correlate(
    evm_path: str = typer.Argument(..., help="EVM artifact JSON file or output directory"),
    zk_path: str = typer.Argument(..., help="zk artifact JSON file or output directory"),
    separator: str = typer.Option(NAME_SEPARATOR, "--separator", help="zk name suffix separator"),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
    strict: bool = typer.Option(False, "--strict", help="Exit 1 when nothing correlates"),
) -> None:
    """Correlate EVM and zk artifacts by logical contract name."""
    init_logging()
    try:
        evm = load_artifact_set(Path(evm_path))
        zk = load_artifact_set(Path(zk_path))
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Artifact error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    contracts = correlate_sets(evm, zk, separator)

    if format_json:
        typer.echo(json.dumps([c.summary() for c in sorted(contracts, key=lambda c: c.name)], indent=2))
    else:
        output_console = Console()
        render_dual_table(contracts, output_console)
        output_console.print(
            f"[dim]{len(contracts)} dual-compiled of {len(zk)} zk / {len(evm)} EVM artifacts[/dim]"
        )

    if strict and not contracts:
        console.print("[bold red]No contracts correlated[/bold red]")
        raise typer.Exit(code=1)

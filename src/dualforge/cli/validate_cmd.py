"""dualforge validate -- check expectation table YAML files.

Reports every error in every file at once, with annotated or CI-friendly
output.
"""

from __future__ import annotations

from pathlib import Path

import typer

from dualforge.loader.errors import ErrorFormatter
from dualforge.loader.validator import validate_expectation_file


def validate(
    files: list[str] = typer.Argument(..., help="Expectation YAML files to validate"),
    ci: bool = typer.Option(False, "--ci", help="CI-friendly concise output"),
) -> None:
    """Validate expectation YAML files. Exits 1 if any file has errors."""
    formatter = ErrorFormatter(ci_mode=ci)

    paths: list[Path] = []
    for f in files:
        p = Path(f)
        if not p.exists():
            typer.echo(f"Error: File not found: {f}", err=True)
            raise typer.Exit(code=1)
        paths.append(p)

    valid_count = 0
    for filepath in paths:
        expectations, errors = validate_expectation_file(filepath)
        if errors:
            source = filepath.read_text(encoding="utf-8")
            typer.echo(formatter.format_all(errors, source, str(filepath)), err=not ci)
            continue
        valid_count += 1
        assert expectations is not None
        n_tests = sum(len(t) for t in expectations.contracts.values())
        typer.echo(f"  {filepath} ... valid ({len(expectations.contracts)} contracts, {n_tests} tests)")

    typer.echo(f"\n{valid_count}/{len(paths)} expectation files valid")
    if valid_count != len(paths):
        raise typer.Exit(code=1)

"""evalbench validate -- check suite files, reporting every error at once."""

from __future__ import annotations

from pathlib import Path

import typer

from evalbench.loader.errors import ErrorFormatter
from evalbench.loader.validator import validate_suite_file


def validate(
    suites: list[str] = typer.Argument(..., help="Suite YAML files to validate"),
    ci: bool = typer.Option(False, "--ci", help="CI-friendly concise output"),
) -> None:
    """Validate suite YAML files. Exits 1 if any file has errors."""
    formatter = ErrorFormatter(ci_mode=ci)
    invalid = 0

    for name in suites:
        path = Path(name)
        if not path.exists():
            typer.echo(f"Error: File not found: {name}", err=True)
            invalid += 1
            continue

        _, errors = validate_suite_file(path)
        if errors:
            invalid += 1
            typer.echo(formatter.format_all(errors, path.read_text(encoding="utf-8"), str(path)), err=not ci)
        else:
            typer.echo(f"  {path} ... valid")

    typer.echo(f"\n{len(suites) - invalid}/{len(suites)} suites valid")
    if invalid:
        raise typer.Exit(code=1)

"""Helpers shared by CLI commands: suite loading and project context."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from evalbench.cli.output import print_validation_errors
from evalbench.loader.validator import validate_suite_file
from evalbench.models.config import ProjectConfig, find_project_root, load_project_config
from evalbench.models.dataset import DatasetEntry
from evalbench.models.suite import EvalSuite
from evalbench.storage.json_store import RecordStore


@dataclass
class ProjectContext:
    root: Path
    config: ProjectConfig
    store: RecordStore


def open_project(start: Path | None = None) -> ProjectContext:
    """Locate the project root from start and open its config and store."""
    root = find_project_root(start)
    config = load_project_config(root)
    return ProjectContext(root=root, config=config, store=RecordStore(root, config.storage_dir))


def load_suite_or_exit(path: Path, console: Console) -> EvalSuite:
    """Validate a suite file; print errors and exit 1 if it is invalid."""
    if not path.exists():
        console.print(f"[bold red]Suite file not found:[/bold red] {path}")
        raise typer.Exit(code=1)
    suite, errors = validate_suite_file(path)
    if errors:
        print_validation_errors(errors, console)
        raise typer.Exit(code=1)
    assert suite is not None
    return suite


def load_entries_or_exit(suite: EvalSuite, suite_path: Path, console: Console) -> list[DatasetEntry]:
    """Resolve the suite's dataset; print the problem and exit 1 on failure."""
    try:
        entries = suite.resolve_entries(suite_path.parent)
    except (OSError, ValueError, ValidationError) as exc:
        console.print(f"[bold red]Dataset error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    if not entries:
        console.print("[bold red]Suite has no dataset entries.[/bold red]")
        raise typer.Exit(code=1)
    return entries

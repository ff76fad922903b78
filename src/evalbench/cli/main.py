"""evalbench CLI entry point."""

from typing import Optional

import typer
import yaml
from pydantic import ValidationError

from evalbench import __version__
from evalbench.cli.compare_cmd import compare
from evalbench.cli.report_cmd import report
from evalbench.cli.run_cmd import run
from evalbench.cli.simulate_cmd import simulate
from evalbench.cli.validate_cmd import validate
from evalbench.log import LOG_FORMATS, configure_logging
from evalbench.models.config import find_project_root, load_project_config

app = typer.Typer(
    name="evalbench",
    help="Evaluate and simulate LLM prompts against datasets",
    no_args_is_help=True,
)

app.command()(run)
app.command()(simulate)
app.command()(report)
app.command()(compare)
app.command()(validate)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"evalbench {__version__}")
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
    log_format: Optional[str] = typer.Option(
        None,
        "--log-format",
        help=f"Log output format: {', '.join(LOG_FORMATS)} (default from evalbench.yaml).",
    ),
    log_level: str = typer.Option("warning", "--log-level", help="Minimum log level."),
) -> None:
    """Evaluate and simulate LLM prompts against datasets."""
    if log_format is None:
        try:
            log_format = load_project_config(find_project_root()).log_format
        except (OSError, ValidationError, yaml.YAMLError):
            log_format = "console"
    try:
        configure_logging(log_format, log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

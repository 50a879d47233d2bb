"""Root Typer application with subcommand registration."""

from __future__ import annotations

from typing import Optional

import typer

from bindiff import BinDiffContext, __version__

app = typer.Typer(
    name="bindiff",
    help="bindiff: compare two compiled artifacts by bytes, symbols, function bodies and strings",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Shared state across commands
_ctx = BinDiffContext()


def get_context() -> BinDiffContext:
    return _ctx


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"bindiff {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", "-C", help="Path to bindiff.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List individual changes and log progress"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON on stderr"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=_version_callback, is_eager=True
    ),
) -> None:
    """bindiff: structural comparison of compiled artifacts."""
    from bindiff.config.loader import load_config
    from bindiff.utils.logging import setup_logging

    _ctx.config = load_config(config)
    _ctx.verbose = verbose
    level = "INFO" if verbose else _ctx.config.logging.level
    setup_logging(level=level, json_output=json_logs or _ctx.config.logging.json_output)


# -- Subcommand registration --
from bindiff.cli.compare import compare_cmd  # noqa: E402
from bindiff.cli.diff_cmd import diff_cmd  # noqa: E402
from bindiff.cli.inspect import strings_cmd, symbols_cmd  # noqa: E402

app.command(name="compare")(compare_cmd)
app.command(name="diff")(diff_cmd)
app.command(name="symbols")(symbols_cmd)
app.command(name="strings")(strings_cmd)

"""bindiff compare: full layered comparison of two artifacts."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer

if TYPE_CHECKING:
    from bindiff.analysis.patterns import IgnorePatterns
    from bindiff.config.models import BinDiffConfig

EXIT_IDENTICAL = 0
EXIT_DIFFERENT = 1
EXIT_ERROR = 2


class Backend(str, Enum):
    tools = "tools"
    elf = "elf"


def prepare_run(
    backend: Optional[Backend],
    keep_linker_symbols: bool,
    ignore_file: Optional[Path],
    context_lines: Optional[int] = None,
) -> tuple[BinDiffConfig, IgnorePatterns | None]:
    """Apply per-command overrides to the loaded config and read the ignore file."""
    from bindiff.analysis.patterns import IgnorePatterns
    from bindiff.cli.app import get_context
    from bindiff.config.loader import apply_overrides

    ctx = get_context()
    config = apply_overrides(
        ctx.ensure_config(),
        {
            "extraction.backend": backend.value if backend else None,
            "diff.keep_linker_symbols": True if keep_linker_symbols else None,
            "diff.context_lines": context_lines,
        },
    )
    ignore = IgnorePatterns.from_file(ignore_file) if ignore_file else None
    return config, ignore


def compare_cmd(
    old: Path = typer.Argument(..., help="Baseline artifact"),
    new: Path = typer.Argument(..., help="Artifact to compare against the baseline"),
    focus: Optional[str] = typer.Option(None, "--focus", "-f", help="Only compare names containing this substring"),
    ignore_file: Optional[Path] = typer.Option(None, "--ignore-file", "-i", help="File of glob patterns to ignore"),
    keep_linker_symbols: bool = typer.Option(
        False, "--keep-linker-symbols", help="Keep symbol annotations on address-loading and call instructions"
    ),
    backend: Optional[Backend] = typer.Option(None, "--backend", help="Extraction backend"),
    json_out: bool = typer.Option(False, "--json", help="Emit a JSON summary instead of the report"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to a file"),
) -> None:
    """Compare two artifacts. Exit 0 when bit-identical, 1 when different, 2 on error."""
    from rich.console import Console

    from bindiff.analysis.pipeline import run_comparison
    from bindiff.cli.app import get_context
    from bindiff.errors import BinDiffError
    from bindiff.report.json_report import comparison_to_dict
    from bindiff.report.reporter import render_report
    from bindiff.utils.formatters import console, err_console, print_error, print_json, print_warning

    ctx = get_context()
    try:
        config, ignore = prepare_run(backend, keep_linker_symbols, ignore_file)
        if ignore:
            err_console.print(f"[dim]Loaded {len(ignore)} ignore pattern(s) from {ignore_file}[/dim]")
        result = run_comparison(
            old,
            new,
            config,
            runner=ctx.ensure_runner(),
            ignore=ignore,
            focus_prefix=focus,
        )
    except BinDiffError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ERROR)

    for warning in result.warnings:
        print_warning(warning)

    if json_out:
        data = comparison_to_dict(result, detailed=ctx.verbose)
        if output:
            output.write_text(json.dumps(data, indent=2) + "\n")
        else:
            print_json(data)
    else:
        demangler = ctx.ensure_demangler() if ctx.verbose else None
        if output:
            with output.open("w") as fh:
                render_report(result, Console(file=fh, highlight=False, no_color=True), ctx.verbose, demangler)
        else:
            render_report(result, console, ctx.verbose, demangler)

    raise typer.Exit(EXIT_IDENTICAL if result.is_identical else EXIT_DIFFERENT)

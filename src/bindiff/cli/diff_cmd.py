"""bindiff diff: unified instruction diff for functions matching a regex."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from bindiff.cli.compare import EXIT_DIFFERENT, EXIT_ERROR, EXIT_IDENTICAL, Backend

MAX_LISTED_FUNCTIONS = 20


def diff_cmd(
    old: Path = typer.Argument(..., help="Baseline artifact"),
    new: Path = typer.Argument(..., help="Artifact to compare against the baseline"),
    pattern: str = typer.Argument(..., help="Regex selecting functions, e.g. 'main' or 'log_.*'"),
    focus: Optional[str] = typer.Option(None, "--focus", "-f", help="Only consider names containing this substring"),
    ignore_file: Optional[Path] = typer.Option(None, "--ignore-file", "-i", help="File of glob patterns to ignore"),
    keep_linker_symbols: bool = typer.Option(
        False, "--keep-linker-symbols", help="Keep symbol annotations on address-loading and call instructions"
    ),
    context: Optional[int] = typer.Option(None, "--context", "-c", min=0, help="Context lines around each change"),
    raw_addresses: bool = typer.Option(False, "--raw-addresses", help="Show instructions as disassembled"),
    backend: Optional[Backend] = typer.Option(None, "--backend", help="Extraction backend"),
) -> None:
    """Show instruction diffs. Exit 0 when every matching function is identical."""
    from rich.markup import escape

    from bindiff.analysis.function_compare import filter_names
    from bindiff.analysis.function_diff import diff_function
    from bindiff.analysis.normalizer import InstructionNormalizer
    from bindiff.analysis.pipeline import select_functions
    from bindiff.cli.app import get_context
    from bindiff.cli.compare import prepare_run
    from bindiff.errors import BinDiffError
    from bindiff.extraction.loader import check_tools, extract_functions, file_info
    from bindiff.extraction.validation import validate_architecture_match, validate_file
    from bindiff.report.reporter import render_function_diff
    from bindiff.utils.formatters import console, err_console, print_error, print_success, print_warning

    ctx = get_context()
    try:
        config, ignore = prepare_run(backend, keep_linker_symbols, ignore_file, context)
        runner = ctx.ensure_runner()
        old = validate_file(old, "Old")
        new = validate_file(new, "New")
        check_tools(config, runner, symbols=False)
        validate_architecture_match(
            file_info(old, config, runner), file_info(new, config, runner), old, new
        )
        old_fns = filter_names(extract_functions(old, config, runner), focus, ignore)
        new_fns = filter_names(extract_functions(new, config, runner), focus, ignore)
        names = select_functions(old_fns, new_fns, pattern)
    except BinDiffError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ERROR)

    if not names:
        print_warning(f"No functions matching pattern '{pattern}'")
        available = sorted(old_fns)
        err_console.print("\nAvailable functions:")
        for name in available[:MAX_LISTED_FUNCTIONS]:
            err_console.print(f"  {name}", markup=False)
        if len(available) > MAX_LISTED_FUNCTIONS:
            err_console.print(f"  ... and {len(available) - MAX_LISTED_FUNCTIONS} more")
        raise typer.Exit(EXIT_DIFFERENT)

    normalizer = InstructionNormalizer(config.normalization)
    separator = "[dim]" + "─" * 70 + "[/dim]\n"
    changed = 0
    for name in names:
        old_fn, new_fn = old_fns.get(name), new_fns.get(name)
        if new_fn is None:
            changed += 1
            console.print(f"[red]Function '{escape(name)}' only exists in old binary.[/red]")
            console.print(f"Instructions: {len(old_fn.instructions)}")
            console.print(separator)
        elif old_fn is None:
            changed += 1
            console.print(f"[green]Function '{escape(name)}' only exists in new binary.[/green]")
            console.print(f"Instructions: {len(new_fn.instructions)}")
            console.print(separator)
        else:
            diff = diff_function(old_fn, new_fn, config.diff.keep_linker_symbols, normalizer)
            if diff.has_changes:
                changed += 1
                render_function_diff(diff, console, config.diff.context_lines, raw_addresses)
                console.print(separator)

    if changed == 0:
        print_success(f"All {len(names)} matching functions are identical.")
        raise typer.Exit(EXIT_IDENTICAL)
    console.print(f"[bold]Total: {changed} modified out of {len(names)} matching functions[/bold]")
    raise typer.Exit(EXIT_DIFFERENT)

"""Rich rendering of comparison results."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from bindiff.analysis.function_compare import summarize_functions
from bindiff.analysis.function_diff import find_hunks
from bindiff.analysis.results import (
    BitEquivalenceResult,
    ComparisonResult,
    DetailedFunctionDiff,
    FunctionDiff,
    Severity,
    StringDiff,
    SymbolDiff,
)
from bindiff.analysis.sequence_diff import Added, Removed
from bindiff.analysis.symbol_diff import symbol_stats
from bindiff.utils.formatters import format_size

if TYPE_CHECKING:
    from bindiff.analysis.demangler import Demangler

MAX_LISTED_SYMBOLS = 20
MAX_LISTED_CHANGES = 10
MAX_LISTED_MODIFIED = 15
MAX_LISTED_STRINGS = 20
MAX_STRING_DISPLAY = 60

_SEVERITY_STYLES = {
    Severity.IDENTICAL: "green",
    Severity.LOW: "green",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "red",
}

_PUNCTUATION = set(".,;:!?-_+=()[]{}<>/'\"\\@#$%^&*|~`")


def is_meaningful_string(s: str) -> bool:
    """True for strings that look like text rather than byte noise."""
    return 3 <= len(s) <= 200 and all(c.isalnum() or c.isspace() or c in _PUNCTUATION for c in s)


def truncate(s: str, max_len: int = MAX_STRING_DISPLAY) -> str:
    return s if len(s) <= max_len else s[: max_len - 3] + "..."


class _NameFormatter:
    def __init__(self, demangler: Demangler | None, names: Sequence[str]) -> None:
        self.demangled = demangler.demangle_batch(names) if demangler else {}

    def __call__(self, name: str) -> str:
        display = escape(name)
        demangled = self.demangled.get(name)
        if demangled:
            display += f"\n        [dim]({escape(demangled)})[/dim]"
        return display


def _collect_names(result: ComparisonResult) -> list[str]:
    names: list[str] = []
    if result.symbol_diff:
        sd = result.symbol_diff
        names += [s.name for s in sd.added] + [s.name for s in sd.removed]
        names += [c.name for c in sd.changed]
    if result.function_diff:
        fd = result.function_diff
        names += [f.name for f in (*fd.added, *fd.removed, *fd.modified)]
    return list(dict.fromkeys(names))


def _more(console: Console, total: int, shown: int) -> None:
    if total > shown:
        console.print(f"    [dim]... and {total - shown} more[/dim]")


def _render_binary_info(result: ComparisonResult, console: Console) -> None:
    info = result.binary_info
    console.print("[bold]Binary Information:[/bold]")
    console.print(f"  Old: {escape(str(info.old_path))}")
    console.print(f"       [dim]{escape(info.old_file_info)}[/dim]")
    console.print(f"  New: {escape(str(info.new_path))}")
    console.print(f"       [dim]{escape(info.new_file_info)}[/dim]")
    console.print()


def _render_bit_equivalence(bit: BitEquivalenceResult, console: Console) -> None:
    console.print("[bold]Step 1: Bit Equivalence[/bold]")
    if bit.identical:
        console.print("  [green]✓ Binaries are bit-identical[/green]")
        console.print(f"    Hash: {bit.old_hash}")
        console.print(f"    Size: {format_size(bit.old_size)}")
    else:
        console.print("  [yellow]✗ Binaries differ at byte level[/yellow]")
        console.print(f"    Old: {bit.old_hash} ({format_size(bit.old_size)})")
        console.print(f"    New: {bit.new_hash} ({format_size(bit.new_size)})")
        if bit.size_delta:
            sign = "+" if bit.size_delta > 0 else ""
            console.print(f"    Size difference: {sign}{format_size(bit.size_delta)}")
    console.print()


def _render_symbols(diff: SymbolDiff, console: Console, verbose: bool, fmt: _NameFormatter) -> None:
    stats = symbol_stats(diff)
    console.print("[bold]Step 2: Symbol Comparison[/bold]")
    console.print(f"  Total symbols: {stats.total_old} (old) → {stats.total_new} (new)")
    console.print(f"  Unchanged: {stats.unchanged} ({stats.unchanged_percent:.1f}%)")

    if diff.added:
        console.print(f"  [green]Added: {len(diff.added)}[/green]")
        if verbose:
            for sym in diff.added[:MAX_LISTED_SYMBOLS]:
                console.print(f"    [green]+ {fmt(sym.name)}[/green] ([dim]{sym.kind}[/dim])")
            _more(console, len(diff.added), MAX_LISTED_SYMBOLS)

    if diff.removed:
        console.print(f"  [red]Removed: {len(diff.removed)}[/red]")
        if verbose:
            for sym in diff.removed[:MAX_LISTED_SYMBOLS]:
                console.print(f"    [red]- {fmt(sym.name)}[/red] ([dim]{sym.kind}[/dim])")
            _more(console, len(diff.removed), MAX_LISTED_SYMBOLS)

    if diff.changed:
        console.print(f"  [yellow]Changed: {len(diff.changed)}[/yellow]")
        if verbose:
            for change in diff.changed[:MAX_LISTED_CHANGES]:
                console.print(f"    [yellow]~ {fmt(change.name)}[/yellow]")
                for line in change.changes:
                    console.print(f"      [dim]{escape(line)}[/dim]")
            _more(console, len(diff.changed), MAX_LISTED_CHANGES)
    console.print()


def _render_functions(diff: FunctionDiff, console: Console, verbose: bool, fmt: _NameFormatter) -> None:
    summary = summarize_functions(diff)
    console.print("[bold]Step 3: Function Body Comparison[/bold]")
    console.print(f"  Total functions: {summary.total_old} (old) → {summary.total_new} (new)")
    console.print(
        f"  [green]Identical: {summary.identical} ({summary.identical_percent:.1f}%)[/green]"
    )

    if summary.modified:
        console.print(f"  [yellow]Modified: {summary.modified}[/yellow]")
        if summary.modified_with_control_flow_changes:
            console.print(
                f"    [yellow]⚠ {summary.modified_with_control_flow_changes} with control flow changes[/yellow]"
            )
        if summary.modified_with_call_changes:
            console.print(
                f"    [yellow]⚠ {summary.modified_with_call_changes} with call changes[/yellow]"
            )
        if verbose:
            for fcr in diff.modified[:MAX_LISTED_MODIFIED]:
                flags = ""
                detail = fcr.instruction_diff
                if detail is not None and detail.changed_control_flow:
                    flags += "[yellow]\\[CF][/yellow] "
                if detail is not None and detail.changed_calls:
                    flags += "[yellow]\\[CALL][/yellow] "
                console.print(f"    [yellow]~ {fmt(fcr.name)}[/yellow] {flags}")
                counts = f"{fcr.old_instruction_count or 0} → {fcr.new_instruction_count or 0} instructions"
                if fcr.stats is not None:
                    counts += f", +{fcr.stats.added}/-{fcr.stats.removed}"
                console.print(f"      [dim]{counts}[/dim]")
            _more(console, len(diff.modified), MAX_LISTED_MODIFIED)

    if summary.added:
        console.print(f"  [green]Added: {summary.added}[/green]")
        if verbose:
            for fcr in diff.added[:MAX_LISTED_CHANGES]:
                console.print(
                    f"    [green]+ {fmt(fcr.name)}[/green] "
                    f"([dim]{fcr.new_instruction_count or 0} instructions[/dim])"
                )
            _more(console, len(diff.added), MAX_LISTED_CHANGES)

    if summary.removed:
        console.print(f"  [red]Removed: {summary.removed}[/red]")
        if verbose:
            for fcr in diff.removed[:MAX_LISTED_CHANGES]:
                console.print(
                    f"    [red]- {fmt(fcr.name)}[/red] "
                    f"([dim]{fcr.old_instruction_count or 0} instructions[/dim])"
                )
            _more(console, len(diff.removed), MAX_LISTED_CHANGES)
    console.print()


def _render_string_list(
    strings: Sequence[str], console: Console, marker: str, style: str
) -> None:
    shown = [s for s in strings if is_meaningful_string(s)][:MAX_LISTED_STRINGS]
    for s in shown:
        console.print(f'    [{style}]{marker} "{escape(truncate(s))}"[/{style}]')
    _more(console, len(strings), len(shown))


def _render_strings(diff: StringDiff, console: Console, verbose: bool) -> None:
    console.print("[bold]Step 4: String Literal Comparison[/bold]")
    console.print(f"  Total strings: {diff.old_count} (old) → {diff.new_count} (new)")
    console.print(f"  Common: {len(diff.common)}")
    if diff.added:
        console.print(f"  [green]Added: {len(diff.added)}[/green]")
        if verbose:
            _render_string_list(diff.added, console, "+", "green")
    if diff.removed:
        console.print(f"  [red]Removed: {len(diff.removed)}[/red]")
        if verbose:
            _render_string_list(diff.removed, console, "-", "red")
    console.print()


def _render_summary(result: ComparisonResult, console: Console) -> None:
    console.print(Panel("Summary", style="bold cyan", expand=True))
    console.print()
    if result.is_identical:
        console.print("  [bold green]Result: BINARIES ARE IDENTICAL[/bold green]")
        console.print()
        return

    style = _SEVERITY_STYLES[result.severity]
    console.print(f"  [bold {style}]Result: BINARIES DIFFER (Severity: {result.severity})[/bold {style}]")
    if result.symbol_diff:
        stats = symbol_stats(result.symbol_diff)
        console.print(
            f"  Symbols: {stats.added} added, {stats.removed} removed, {stats.changed} changed"
        )
    if result.function_diff:
        summary = summarize_functions(result.function_diff)
        console.print(
            f"  Functions: {summary.added} added, {summary.removed} removed, "
            f"{summary.modified} modified"
        )
        console.print(f"  Function identity: {summary.identical_percent:.1f}% unchanged")
    if result.string_diff and result.string_diff.has_changes:
        console.print(
            f"  Strings: {len(result.string_diff.added)} added, "
            f"{len(result.string_diff.removed)} removed"
        )
    for warning in result.warnings:
        console.print(f"  [yellow]Warning:[/yellow] {escape(warning)}")
    console.print()


def render_report(
    result: ComparisonResult,
    console: Console,
    verbose: bool = False,
    demangler: Demangler | None = None,
) -> None:
    """Print the full human-readable comparison report."""
    fmt = _NameFormatter(demangler if verbose else None, _collect_names(result))

    console.print()
    console.print(Panel("Binary Comparison Report", style="bold cyan", expand=True))
    console.print()
    _render_binary_info(result, console)
    _render_bit_equivalence(result.bit_equivalence, console)

    if not result.is_identical:
        if result.symbol_diff is not None:
            _render_symbols(result.symbol_diff, console, verbose, fmt)
        if result.function_diff is not None:
            _render_functions(result.function_diff, console, verbose, fmt)
        if result.string_diff is not None:
            _render_strings(result.string_diff, console, verbose)

    _render_summary(result, console)


def render_function_diff(
    diff: DetailedFunctionDiff,
    console: Console,
    context_lines: int = 3,
    raw_addresses: bool = False,
) -> None:
    """Print one function's edit script as a unified diff.

    Lines show the normalized instruction unless ``raw_addresses`` is set, in
    which case the instruction text as disassembled is shown instead.
    """
    name = escape(diff.function_name)
    console.print(f"[bold cyan]--- old/{name}[/bold cyan]")
    console.print(f"[bold cyan]+++ new/{name}[/bold cyan]")
    console.print()

    for hunk in find_hunks(diff.diff_lines, context_lines):
        console.print(f"[cyan]{hunk.header}[/cyan]")
        for line in hunk.lines:
            text = escape(diff.instruction_for(line).text if raw_addresses else line.key)
            if isinstance(line, Added):
                console.print(f"[green]+ {text}[/green]")
            elif isinstance(line, Removed):
                console.print(f"[red]- {text}[/red]")
            else:
                console.print(f"  {text}")
        console.print()

    stats = diff.stats
    console.print("[bold]Statistics:[/bold]")
    console.print(f"  Old: {stats.total_old} instructions")
    console.print(f"  New: {stats.total_new} instructions")
    console.print(f"  [red]Removed: {stats.removed}[/red]")
    console.print(f"  [green]Added: {stats.added}[/green]")
    console.print(f"  Unchanged: {stats.unchanged}")
    console.print(f"  Changed: {stats.changed_percent:.1f}%")

"""bindiff symbols / strings: inspect what extraction sees in one artifact."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from bindiff.cli.compare import EXIT_ERROR, Backend


def symbols_cmd(
    path: Path = typer.Argument(..., help="Artifact to inspect"),
    functions_only: bool = typer.Option(False, "--functions", help="List function symbols only"),
    demangle: bool = typer.Option(False, "--demangle", help="Show demangled C++ names"),
    backend: Optional[Backend] = typer.Option(None, "--backend", help="Extraction backend"),
) -> None:
    """List the symbol table of one artifact."""
    from bindiff.cli.app import get_context
    from bindiff.cli.compare import prepare_run
    from bindiff.errors import BinDiffError
    from bindiff.extraction.elf_loader import load_elf_artifact
    from bindiff.extraction.nm_parser import SymbolExtractor
    from bindiff.extraction.validation import validate_file
    from bindiff.utils.formatters import print_error, print_table

    ctx = get_context()
    try:
        config, _ = prepare_run(backend, False, None)
        path = validate_file(path)
        if config.extraction.backend == "elf":
            symbols = list(load_elf_artifact(path, config.extraction.string_min_length).symbols)
        else:
            symbols = SymbolExtractor(ctx.ensure_runner(), config.tools.nm).extract(path)
    except BinDiffError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ERROR)

    if functions_only:
        symbols = [s for s in symbols if s.is_function]
    demangler = ctx.ensure_demangler() if demangle else None

    rows = [
        {
            "name": demangler.format_symbol(s.name) if demangler else s.name,
            "kind": str(s.kind),
            "binding": str(s.binding),
            "address": f"0x{s.address:x}" if s.address is not None else "",
            "size": s.size if s.size is not None else "",
        }
        for s in sorted(symbols, key=lambda s: s.name)
    ]
    print_table(rows, title=f"Symbols in {path.name} ({len(rows)})")


def strings_cmd(
    path: Path = typer.Argument(..., help="Artifact to inspect"),
    min_length: Optional[int] = typer.Option(None, "--min-length", "-n", min=1, help="Minimum string length"),
    backend: Optional[Backend] = typer.Option(None, "--backend", help="Extraction backend"),
) -> None:
    """List the printable strings of one artifact."""
    from bindiff.cli.app import get_context
    from bindiff.cli.compare import prepare_run
    from bindiff.errors import BinDiffError
    from bindiff.extraction.elf_loader import load_elf_artifact
    from bindiff.extraction.strings import StringExtractor
    from bindiff.extraction.validation import validate_file
    from bindiff.utils.formatters import console, print_error

    ctx = get_context()
    try:
        config, _ = prepare_run(backend, False, None)
        length = min_length or config.extraction.string_min_length
        path = validate_file(path)
        if config.extraction.backend == "elf":
            extracted = load_elf_artifact(path, length).strings
        else:
            extracted = StringExtractor(ctx.ensure_runner(), config.tools.strings).extract(path, length)
    except BinDiffError as exc:
        print_error(str(exc))
        raise typer.Exit(EXIT_ERROR)

    for s in extracted.strings:
        console.print(s, markup=False)

"""Symbol tables via `nm`."""

from __future__ import annotations

import re
from pathlib import Path

from bindiff.errors import ExtractionError
from bindiff.extraction.artifacts import Symbol, SymbolBinding, SymbolKind
from bindiff.extraction.runner import ProcessRunner
from bindiff.utils.logging import get_logger

log = get_logger(__name__)

_HEX = re.compile(r"^[0-9a-fA-F]+$")


def _parse_hex(text: str) -> int | None:
    try:
        return int(text, 16)
    except ValueError:
        return None


def parse_nm_line(line: str) -> Symbol | None:
    """Parse one line of ``nm -p`` output.

    Accepted shapes::

        0000000100003f40 T _main
                         U _printf
        _orphan
    """
    parts = line.split()
    if not parts:
        return None

    if len(parts) == 3 and _HEX.match(parts[0]) and len(parts[1]) == 1:
        addr, type_char, name = parts
        return Symbol(
            name=name,
            kind=SymbolKind.from_nm_type(type_char),
            binding=SymbolBinding.from_nm_flag(type_char),
            address=_parse_hex(addr),
        )
    if len(parts) == 2 and len(parts[0]) == 1:
        type_char, name = parts
        return Symbol(
            name=name,
            kind=SymbolKind.from_nm_type(type_char),
            binding=SymbolBinding.from_nm_flag(type_char),
        )
    if len(parts) == 1:
        return Symbol(name=parts[0])
    return None


def parse_nm_output(output: str) -> list[Symbol]:
    symbols = []
    for line in output.splitlines():
        sym = parse_nm_line(line)
        if sym is not None:
            symbols.append(sym)
    return symbols


def parse_nm_names_only(output: str) -> list[Symbol]:
    """Parse ``nm -j`` output, which lists bare names."""
    return [Symbol(name=line.strip()) for line in output.splitlines() if line.strip()]


class SymbolExtractor:
    def __init__(self, runner: ProcessRunner, nm: str = "nm") -> None:
        self.runner = runner
        self.nm = nm

    def extract(self, path: Path) -> list[Symbol]:
        result = self.runner.run(self.nm, "-p", str(path))
        if result.ok:
            symbols = parse_nm_output(result.stdout)
            log.info("symbols_extracted", path=str(path), count=len(symbols))
            return symbols

        # Some Mach-O inputs only work in names-only mode.
        fallback = self.runner.run(self.nm, "-j", str(path))
        if fallback.ok:
            symbols = parse_nm_names_only(fallback.stdout)
            log.info("symbols_extracted", path=str(path), count=len(symbols), names_only=True)
            return symbols

        raise ExtractionError(
            f"nm failed ({result.describe_failure()}); "
            f"fallback also failed ({fallback.describe_failure()})"
        )

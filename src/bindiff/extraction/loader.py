"""Build a complete `ExtractedArtifact` from one file."""

from __future__ import annotations

from pathlib import Path

from bindiff.analysis.bit_equivalence import hash_file
from bindiff.config.models import BinDiffConfig
from bindiff.errors import ExtractionError
from bindiff.extraction.artifacts import DisassembledFunction, ExtractedArtifact
from bindiff.extraction.elf_loader import describe_elf_file, load_elf_artifact
from bindiff.extraction.nm_parser import SymbolExtractor
from bindiff.extraction.objdump_parser import Disassembler
from bindiff.extraction.runner import ProcessRunner
from bindiff.extraction.strings import StringExtractor
from bindiff.extraction.validation import (
    describe_file,
    extract_arch,
    missing_tools,
    validate_system_tools,
)
from bindiff.utils.logging import get_logger

log = get_logger(__name__)


def check_tools(config: BinDiffConfig, runner: ProcessRunner, symbols: bool = True) -> None:
    """Fail before extraction when the tools backend is missing an executable.

    Any one of the configured disassemblers is enough; ``symbols=False`` skips
    the nm and strings checks for the disassembly-only diff view.
    """
    if config.extraction.backend == "elf":
        return
    tools = config.tools
    required = [tools.file]
    if symbols:
        required.append(tools.nm)
        if config.extraction.strings_required:
            required.append(tools.strings)
    validate_system_tools(runner, required)

    disassemblers = (tools.objdump, tools.llvm_objdump, tools.otool)
    if len(missing_tools(runner, disassemblers)) == len(disassemblers):
        raise ExtractionError(f"No disassembler found; install one of: {', '.join(disassemblers)}")


def file_info(path: Path, config: BinDiffConfig, runner: ProcessRunner) -> str:
    if config.extraction.backend == "elf":
        return describe_elf_file(path)
    return describe_file(path, runner, config.tools.file)


def _extract_with_tools(
    path: Path,
    config: BinDiffConfig,
    runner: ProcessRunner,
    info: str | None,
) -> ExtractedArtifact:
    tools = config.tools
    sha256, size = hash_file(path)
    if info is None:
        info = describe_file(path, runner, tools.file)

    symbols = SymbolExtractor(runner, tools.nm).extract(path)
    functions = Disassembler(runner, tools.objdump, tools.llvm_objdump, tools.otool).disassemble(path)

    try:
        strings = StringExtractor(runner, tools.strings).extract(
            path, config.extraction.string_min_length
        )
    except ExtractionError as exc:
        if config.extraction.strings_required:
            raise
        log.warning("strings_skipped", path=str(path), error=str(exc))
        strings = None

    return ExtractedArtifact(
        path=path,
        sha256=sha256,
        size=size,
        file_info=info,
        architecture=extract_arch(info),
        symbols=tuple(symbols),
        functions=functions,
        strings=strings,
    )


def extract_artifact(
    path: Path,
    config: BinDiffConfig,
    runner: ProcessRunner,
    info: str | None = None,
) -> ExtractedArtifact:
    """Extract symbols, functions and strings, or raise `ExtractionError`.

    ``info`` is the already-known file description, when the caller has one.
    """
    path = Path(path)
    log.info("extracting", path=str(path), backend=config.extraction.backend)
    if config.extraction.backend == "elf":
        return load_elf_artifact(path, config.extraction.string_min_length)
    return _extract_with_tools(path, config, runner, info)


def extract_functions(
    path: Path, config: BinDiffConfig, runner: ProcessRunner
) -> dict[str, DisassembledFunction]:
    """Disassembly only; the single-function diff view needs nothing else."""
    path = Path(path)
    if config.extraction.backend == "elf":
        return load_elf_artifact(path, config.extraction.string_min_length).functions
    tools = config.tools
    return Disassembler(runner, tools.objdump, tools.llvm_objdump, tools.otool).disassemble(path)

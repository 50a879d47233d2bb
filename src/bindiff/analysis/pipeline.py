"""End-to-end comparison of two artifacts."""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from bindiff.analysis.bit_equivalence import check_files
from bindiff.analysis.function_compare import compare_functions
from bindiff.analysis.normalizer import InstructionNormalizer
from bindiff.analysis.patterns import NamePredicate, is_ignored
from bindiff.analysis.results import BinaryInfo, ComparisonResult
from bindiff.analysis.severity import classify_severity
from bindiff.analysis.string_diff import diff_strings
from bindiff.analysis.symbol_diff import diff_symbols
from bindiff.config.models import BinDiffConfig
from bindiff.errors import InvalidPatternError
from bindiff.extraction.loader import check_tools, extract_artifact, file_info
from bindiff.extraction.runner import LoggingProcessRunner, ProcessRunner, SubprocessRunner
from bindiff.extraction.validation import validate_architecture_match, validate_file
from bindiff.utils.logging import bind_comparison, get_logger

log = get_logger(__name__)


def run_comparison(
    old_path: Path,
    new_path: Path,
    config: BinDiffConfig,
    runner: ProcessRunner | None = None,
    ignore: NamePredicate | None = None,
    focus_prefix: str | None = None,
) -> ComparisonResult:
    """Compare two artifacts layer by layer.

    Bit-identical inputs short-circuit before any tool runs. Otherwise both
    artifacts are extracted in full first; an `ExtractionError` from either
    side aborts the whole comparison.
    """
    old_path = validate_file(Path(old_path), "Old")
    new_path = validate_file(Path(new_path), "New")
    runner = runner or LoggingProcessRunner(SubprocessRunner(timeout=config.tools.timeout))
    bind_comparison(str(old_path), str(new_path))
    check_tools(config, runner)

    old_info = file_info(old_path, config, runner)
    new_info = file_info(new_path, config, runner)
    validate_architecture_match(old_info, new_info, old_path, new_path)
    binary_info = BinaryInfo(old_path, new_path, old_info, new_info)

    bit_result = check_files(old_path, new_path)
    if bit_result.identical:
        log.info("binaries_identical", sha256=bit_result.old_hash)
        return ComparisonResult(
            binary_info=binary_info,
            bit_equivalence=bit_result,
            severity=classify_severity(bit_result),
        )

    old = extract_artifact(old_path, config, runner, old_info)
    new = extract_artifact(new_path, config, runner, new_info)

    symbol_diff = diff_symbols(old.symbols, new.symbols, focus_prefix, ignore)
    function_diff = compare_functions(
        old.functions,
        new.functions,
        focus_prefix=focus_prefix,
        ignore=ignore,
        keep_linker_symbols=config.diff.keep_linker_symbols,
        max_instructions=config.diff.max_instructions,
        normalizer=InstructionNormalizer(config.normalization),
    )

    warnings: list[str] = []
    string_diff = None
    if old.strings is not None and new.strings is not None:
        string_diff = diff_strings(old.strings.as_set(), new.strings.as_set())
    else:
        warnings.append("String extraction failed; string comparison skipped.")

    skipped = [f.name for f in function_diff.modified if f.stats is None]
    if skipped:
        warnings.append(
            f"{len(skipped)} function(s) exceed {config.diff.max_instructions} "
            "instructions; line statistics skipped."
        )

    severity = classify_severity(
        bit_result, symbol_diff, function_diff, string_diff, policy=config.severity
    )
    log.info("comparison_complete", severity=str(severity))
    return ComparisonResult(
        binary_info=binary_info,
        bit_equivalence=bit_result,
        severity=severity,
        symbol_diff=symbol_diff,
        function_diff=function_diff,
        string_diff=string_diff,
        warnings=tuple(warnings),
    )


def select_functions(
    old_names: Iterable[str],
    new_names: Iterable[str],
    pattern: str,
    focus_prefix: str | None = None,
    ignore: NamePredicate | None = None,
) -> list[str]:
    """Sorted union of names that contain a match for ``pattern``."""
    try:
        regex = re.compile(pattern)
    except re.error as exc:
        raise InvalidPatternError(f"Invalid function pattern {pattern!r}: {exc}") from exc

    names = set(old_names) | set(new_names)
    if focus_prefix:
        names = {n for n in names if focus_prefix in n}
    if ignore is not None:
        names = {n for n in names if not is_ignored(ignore, n)}
    return sorted(n for n in names if regex.search(n))

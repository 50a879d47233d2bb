"""Classify every routine of two artifacts as identical, modified, added or removed."""

from __future__ import annotations

from collections.abc import Mapping

from bindiff.analysis.function_diff import body_equals, diff_function, has_semantic_change
from bindiff.analysis.normalizer import InstructionNormalizer
from bindiff.analysis.patterns import NamePredicate, is_ignored
from bindiff.analysis.results import (
    FunctionComparisonResult,
    FunctionDiff,
    FunctionDiffSummary,
    FunctionStatus,
)
from bindiff.extraction.artifacts import DisassembledFunction
from bindiff.utils.logging import get_logger

log = get_logger(__name__)


def filter_names(
    functions: Mapping[str, DisassembledFunction],
    focus_prefix: str | None = None,
    ignore: NamePredicate | None = None,
) -> dict[str, DisassembledFunction]:
    """Apply the focus substring filter, then drop ignored names."""
    selected = dict(functions)
    if focus_prefix:
        selected = {name: fn for name, fn in selected.items() if focus_prefix in name}
    if ignore is not None:
        selected = {name: fn for name, fn in selected.items() if not is_ignored(ignore, name)}
    return selected


def compare_functions(
    old_functions: Mapping[str, DisassembledFunction],
    new_functions: Mapping[str, DisassembledFunction],
    focus_prefix: str | None = None,
    ignore: NamePredicate | None = None,
    keep_linker_symbols: bool = False,
    max_instructions: int | None = None,
    normalizer: InstructionNormalizer | None = None,
) -> FunctionDiff:
    """Compare the bodies of every function present in either artifact.

    Common functions are first compared by normalized body hash; only
    mismatches get the full LCS diff. Bodies longer than `max_instructions`
    skip the LCS (their stats stay ``None``) but are still classified.
    """
    old = filter_names(old_functions, focus_prefix, ignore)
    new = filter_names(new_functions, focus_prefix, ignore)

    added = tuple(
        FunctionComparisonResult(
            name=name,
            status=FunctionStatus.ONLY_IN_NEW,
            new_instruction_count=len(new[name].instructions),
        )
        for name in sorted(new.keys() - old.keys())
    )
    removed = tuple(
        FunctionComparisonResult(
            name=name,
            status=FunctionStatus.ONLY_IN_OLD,
            old_instruction_count=len(old[name].instructions),
        )
        for name in sorted(old.keys() - new.keys())
    )

    identical: list[FunctionComparisonResult] = []
    modified: list[FunctionComparisonResult] = []
    for name in sorted(old.keys() & new.keys()):
        old_fn, new_fn = old[name], new[name]
        counts = {
            "old_instruction_count": len(old_fn.instructions),
            "new_instruction_count": len(new_fn.instructions),
        }
        if body_equals(old_fn, new_fn, keep_linker_symbols, normalizer):
            identical.append(
                FunctionComparisonResult(name=name, status=FunctionStatus.IDENTICAL, **counts)
            )
            continue

        stats = None
        if max_instructions is None or max(
            len(old_fn.instructions), len(new_fn.instructions)
        ) <= max_instructions:
            stats = diff_function(old_fn, new_fn, keep_linker_symbols, normalizer).stats
        else:
            log.warning("function_diff_skipped", function=name, limit=max_instructions, **counts)

        modified.append(
            FunctionComparisonResult(
                name=name,
                status=FunctionStatus.MODIFIED,
                instruction_diff=has_semantic_change(old_fn, new_fn, keep_linker_symbols, normalizer),
                stats=stats,
                **counts,
            )
        )

    log.debug(
        "functions_compared",
        identical=len(identical),
        modified=len(modified),
        added=len(added),
        removed=len(removed),
    )
    return FunctionDiff(
        identical=tuple(identical),
        modified=tuple(modified),
        added=added,
        removed=removed,
    )


def summarize_functions(diff: FunctionDiff) -> FunctionDiffSummary:
    control_flow = sum(
        1 for r in diff.modified if r.instruction_diff and r.instruction_diff.changed_control_flow
    )
    calls = sum(1 for r in diff.modified if r.instruction_diff and r.instruction_diff.changed_calls)
    return FunctionDiffSummary(
        total_old=diff.total_old,
        total_new=diff.total_new,
        identical=len(diff.identical),
        modified=len(diff.modified),
        added=len(diff.added),
        removed=len(diff.removed),
        identical_percent=diff.identical_percent,
        modified_with_control_flow_changes=control_flow,
        modified_with_call_changes=calls,
    )

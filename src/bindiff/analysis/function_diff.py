"""Line-level diffs of a single routine's instruction body."""

from __future__ import annotations

import hashlib
from typing import Sequence

from bindiff.analysis.normalizer import InstructionNormalizer, default_normalizer
from bindiff.analysis.results import (
    DetailedFunctionDiff,
    DiffStats,
    Hunk,
    InstructionDiff,
)
from bindiff.analysis.sequence_diff import (
    Added,
    Context,
    DiffLine,
    Removed,
    count_tags,
    diff_sequences,
    is_change,
)
from bindiff.extraction.artifacts import DisassembledFunction
from bindiff.utils.logging import get_logger

log = get_logger(__name__)


def _keys(
    fn: DisassembledFunction,
    keep_linker_symbols: bool,
    normalizer: InstructionNormalizer | None,
) -> list[str]:
    return (normalizer or default_normalizer()).normalize_all(fn.instructions, keep_linker_symbols)


def diff_function(
    old_fn: DisassembledFunction,
    new_fn: DisassembledFunction,
    keep_linker_symbols: bool = False,
    normalizer: InstructionNormalizer | None = None,
) -> DetailedFunctionDiff:
    """Full LCS diff of two bodies over their normalized instruction keys."""
    old_keys = _keys(old_fn, keep_linker_symbols, normalizer)
    new_keys = _keys(new_fn, keep_linker_symbols, normalizer)
    lines = diff_sequences(old_keys, new_keys)
    added, removed, unchanged = count_tags(lines)

    log.debug(
        "function_diffed",
        function=old_fn.name,
        old=len(old_keys),
        new=len(new_keys),
        added=added,
        removed=removed,
    )
    return DetailedFunctionDiff(
        function_name=old_fn.name,
        old_instructions=old_fn.instructions,
        new_instructions=new_fn.instructions,
        diff_lines=tuple(lines),
        stats=DiffStats(
            total_old=len(old_keys),
            total_new=len(new_keys),
            added=added,
            removed=removed,
            unchanged=unchanged,
        ),
    )


def body_hash(
    fn: DisassembledFunction,
    keep_linker_symbols: bool = False,
    normalizer: InstructionNormalizer | None = None,
) -> str:
    """SHA-256 over the ordered normalized keys of a function body."""
    content = "\n".join(_keys(fn, keep_linker_symbols, normalizer))
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def body_equals(
    old_fn: DisassembledFunction,
    new_fn: DisassembledFunction,
    keep_linker_symbols: bool = False,
    normalizer: InstructionNormalizer | None = None,
) -> bool:
    if len(old_fn.instructions) != len(new_fn.instructions):
        return False
    return body_hash(old_fn, keep_linker_symbols, normalizer) == body_hash(
        new_fn, keep_linker_symbols, normalizer
    )


def has_semantic_change(
    old_fn: DisassembledFunction,
    new_fn: DisassembledFunction,
    keep_linker_symbols: bool = False,
    normalizer: InstructionNormalizer | None = None,
) -> InstructionDiff:
    """Coarse set-based comparison used for the control-flow/call signals.

    Instructions whose key is absent from the other side's key *set* count as
    added or removed. Reordered bodies therefore look unchanged here, which is
    why Identical/Modified is decided by `body_equals` and never by this.
    """
    old_keys = _keys(old_fn, keep_linker_symbols, normalizer)
    new_keys = _keys(new_fn, keep_linker_symbols, normalizer)
    old_set, new_set = set(old_keys), set(new_keys)

    removed = tuple(
        insn for insn, key in zip(old_fn.instructions, old_keys) if key not in new_set
    )
    added = tuple(
        insn for insn, key in zip(new_fn.instructions, new_keys) if key not in old_set
    )
    return InstructionDiff(
        added=added,
        removed=removed,
        common_count=len(old_set & new_set),
        changed_control_flow=any(i.is_control_flow for i in removed + added),
        changed_calls=any(i.is_call for i in removed + added),
    )


def find_hunks(lines: Sequence[DiffLine], context_lines: int = 3) -> list[Hunk]:
    """Group an edit script into unified-diff hunks.

    Every change is padded by `context_lines` on each side (clamped to the
    script). Padded windows that overlap or touch merge into one hunk; any gap
    of one or more untouched lines starts a new one.
    """
    if context_lines < 0:
        raise ValueError(f"context_lines must be >= 0, got {context_lines}")

    changed = [i for i, line in enumerate(lines) if is_change(line)]
    if not changed:
        return []

    last = len(lines) - 1
    ranges: list[list[int]] = []
    for idx in changed:
        start = max(0, idx - context_lines)
        end = min(last, idx + context_lines)
        if ranges and start <= ranges[-1][1] + 1:
            ranges[-1][1] = max(ranges[-1][1], end)
        else:
            ranges.append([start, end])

    # Old/new lines consumed before each script position.
    old_before: list[int] = []
    new_before: list[int] = []
    old_pos = new_pos = 0
    for line in lines:
        old_before.append(old_pos)
        new_before.append(new_pos)
        if not isinstance(line, Added):
            old_pos += 1
        if not isinstance(line, Removed):
            new_pos += 1

    hunks: list[Hunk] = []
    for start, end in ranges:
        window = tuple(lines[start : end + 1])
        old_count = sum(1 for line in window if isinstance(line, (Context, Removed)))
        new_count = sum(1 for line in window if isinstance(line, (Context, Added)))
        hunks.append(
            Hunk(
                lines=window,
                old_start=old_before[start] + (1 if old_count else 0),
                old_count=old_count,
                new_start=new_before[start] + (1 if new_count else 0),
                new_count=new_count,
            )
        )
    return hunks

"""Longest-common-subsequence diff over two ordered key sequences.

The output is a merged edit script made of three closed variants:

* ``Context``  -- present on both sides (part of the LCS)
* ``Removed``  -- present only in the old sequence
* ``Added``    -- present only in the new sequence

Each variant carries the key and its index into the sequence(s) it came from,
so callers can map a line back to the record that produced the key.

The table is O(m*n) in time and memory. That is fine for a single routine
(tens to a few thousand instructions) but not for diffing a whole binary as one
sequence; callers bound their inputs before calling in.

Tie-break: when the backtrack can step either side without shortening the
LCS, it steps the *new* side first. Since the script is built backwards and
reversed at the end, a substitution therefore reads as its removals followed
by its additions. This only decides which of two equally long alignments is
shown; added/removed counts are the same either way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union


@dataclass(frozen=True)
class Context:
    key: str
    old_index: int
    new_index: int


@dataclass(frozen=True)
class Removed:
    key: str
    old_index: int


@dataclass(frozen=True)
class Added:
    key: str
    new_index: int


DiffLine = Union[Context, Removed, Added]


def _lcs_table(old: Sequence[str], new: Sequence[str]) -> list[list[int]]:
    m, n = len(old), len(new)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row, prev = dp[i], dp[i - 1]
        a = old[i - 1]
        for j in range(1, n + 1):
            if a == new[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                row[j] = prev[j] if prev[j] >= row[j - 1] else row[j - 1]
    return dp


def lcs_length(old: Sequence[str], new: Sequence[str]) -> int:
    return _lcs_table(old, new)[len(old)][len(new)]


def diff_sequences(old_keys: Sequence[str], new_keys: Sequence[str]) -> list[DiffLine]:
    """Compute the edit script turning `old_keys` into `new_keys`."""
    dp = _lcs_table(old_keys, new_keys)
    i, j = len(old_keys), len(new_keys)
    script: list[DiffLine] = []

    while i > 0 or j > 0:
        if i > 0 and j > 0 and old_keys[i - 1] == new_keys[j - 1]:
            script.append(Context(new_keys[j - 1], i - 1, j - 1))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
            script.append(Added(new_keys[j - 1], j - 1))
            j -= 1
        else:
            script.append(Removed(old_keys[i - 1], i - 1))
            i -= 1

    script.reverse()
    return script


def reconstruct_old(lines: Sequence[DiffLine]) -> list[str]:
    """Rebuild the old sequence from an edit script (Context + Removed)."""
    return [line.key for line in lines if not isinstance(line, Added)]


def reconstruct_new(lines: Sequence[DiffLine]) -> list[str]:
    """Rebuild the new sequence from an edit script (Context + Added)."""
    return [line.key for line in lines if not isinstance(line, Removed)]


def count_tags(lines: Sequence[DiffLine]) -> tuple[int, int, int]:
    """Return ``(added, removed, unchanged)`` counts for an edit script."""
    added = removed = unchanged = 0
    for line in lines:
        if isinstance(line, Added):
            added += 1
        elif isinstance(line, Removed):
            removed += 1
        elif isinstance(line, Context):
            unchanged += 1
        else:
            raise TypeError(f"Unknown diff line variant: {type(line).__name__}")
    return added, removed, unchanged


def is_change(line: DiffLine) -> bool:
    return isinstance(line, (Added, Removed))

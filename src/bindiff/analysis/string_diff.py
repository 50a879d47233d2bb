"""Set difference over embedded string literals."""

from __future__ import annotations

from collections.abc import Iterable

from bindiff.analysis.results import StringDiff


def diff_strings(old_strings: Iterable[str], new_strings: Iterable[str]) -> StringDiff:
    """Compare two string collections verbatim, ignoring order and repeats."""
    old_set = set(old_strings)
    new_set = set(new_strings)
    return StringDiff(
        old_count=len(old_set),
        new_count=len(new_set),
        added=tuple(sorted(new_set - old_set)),
        removed=tuple(sorted(old_set - new_set)),
        common=tuple(sorted(old_set & new_set)),
    )

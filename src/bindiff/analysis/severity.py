"""Coarse severity verdict for a comparison.

This is a fixed policy, not a weighted score:

* ``IDENTICAL`` -- the artifacts are byte-identical; nothing else is looked at.
* ``HIGH``      -- at least one function disappeared.
* ``MEDIUM``    -- more than `max_added_functions` functions appeared, or more
  than `max_modified_functions` changed body.
* ``LOW``       -- anything else, including string-only or symbol-only changes.
"""

from __future__ import annotations

from bindiff.analysis.results import (
    BitEquivalenceResult,
    FunctionDiff,
    Severity,
    StringDiff,
    SymbolDiff,
)
from bindiff.config.models import SeverityConfig


def classify_severity(
    bit_result: BitEquivalenceResult,
    symbol_diff: SymbolDiff | None = None,
    function_diff: FunctionDiff | None = None,
    string_diff: StringDiff | None = None,
    policy: SeverityConfig | None = None,
) -> Severity:
    if bit_result.identical:
        return Severity.IDENTICAL

    policy = policy or SeverityConfig()
    if function_diff is not None:
        if function_diff.removed:
            return Severity.HIGH
        if (
            len(function_diff.added) > policy.max_added_functions
            or len(function_diff.modified) > policy.max_modified_functions
        ):
            return Severity.MEDIUM
    # Symbol and string changes alone never raise the verdict above LOW.
    return Severity.LOW

"""JSON-ready view of a comparison, for CI and scripting."""

from __future__ import annotations

from typing import Any

from bindiff.analysis.function_compare import summarize_functions
from bindiff.analysis.results import ComparisonResult, FunctionComparisonResult
from bindiff.analysis.symbol_diff import symbol_stats


def _function_entry(fcr: FunctionComparisonResult) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "name": fcr.name,
        "oldInstructions": fcr.old_instruction_count,
        "newInstructions": fcr.new_instruction_count,
    }
    if fcr.instruction_diff is not None:
        entry["controlFlowChanged"] = fcr.instruction_diff.changed_control_flow
        entry["callsChanged"] = fcr.instruction_diff.changed_calls
    if fcr.stats is not None:
        entry["added"] = fcr.stats.added
        entry["removed"] = fcr.stats.removed
    return entry


def comparison_to_dict(result: ComparisonResult, detailed: bool = False) -> dict[str, Any]:
    """Counts per layer; ``detailed`` adds the names behind each count."""
    bit = result.bit_equivalence
    data: dict[str, Any] = {
        "identical": result.is_identical,
        "severity": str(result.severity),
        "bitEquivalence": {
            "identical": bit.identical,
            "oldHash": bit.old_hash,
            "newHash": bit.new_hash,
            "oldSize": bit.old_size,
            "newSize": bit.new_size,
        },
    }

    if result.symbol_diff is not None:
        stats = symbol_stats(result.symbol_diff)
        data["symbols"] = {
            "totalOld": stats.total_old,
            "totalNew": stats.total_new,
            "added": stats.added,
            "removed": stats.removed,
            "changed": stats.changed,
            "unchanged": stats.unchanged,
        }
        if detailed:
            sd = result.symbol_diff
            data["symbols"]["details"] = {
                "added": [s.name for s in sd.added],
                "removed": [s.name for s in sd.removed],
                "changed": {c.name: list(c.changes) for c in sd.changed},
            }

    if result.function_diff is not None:
        summary = summarize_functions(result.function_diff)
        data["functions"] = {
            "totalOld": summary.total_old,
            "totalNew": summary.total_new,
            "identical": summary.identical,
            "modified": summary.modified,
            "added": summary.added,
            "removed": summary.removed,
            "identicalPercent": summary.identical_percent,
        }
        if detailed:
            fd = result.function_diff
            data["functions"]["details"] = {
                "modified": [_function_entry(f) for f in fd.modified],
                "added": [f.name for f in fd.added],
                "removed": [f.name for f in fd.removed],
            }

    if result.string_diff is not None:
        sd = result.string_diff
        data["strings"] = {
            "totalOld": sd.old_count,
            "totalNew": sd.new_count,
            "added": len(sd.added),
            "removed": len(sd.removed),
            "common": len(sd.common),
        }

    if result.warnings:
        data["warnings"] = list(result.warnings)
    return data

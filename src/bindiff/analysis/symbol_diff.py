"""Name-keyed comparison of two symbol tables."""

from __future__ import annotations

from collections.abc import Iterable

from bindiff.analysis.patterns import NamePredicate, is_ignored
from bindiff.analysis.results import SymbolChange, SymbolDiff, SymbolDiffStats
from bindiff.extraction.artifacts import Symbol
from bindiff.utils.logging import get_logger

log = get_logger(__name__)


def _select(
    symbols: Iterable[Symbol],
    focus_prefix: str | None,
    ignore: NamePredicate | None,
) -> list[Symbol]:
    selected = list(symbols)
    if focus_prefix:
        selected = [s for s in selected if focus_prefix in s.name]
    if ignore is not None:
        selected = [s for s in selected if not is_ignored(ignore, s.name)]
    return selected


def describe_changes(old: Symbol, new: Symbol) -> tuple[str, ...]:
    """Human-readable attribute differences; empty when nothing changed.

    Size and section only count when both sides report them, since nm omits
    both for most symbols.
    """
    changes: list[str] = []
    if old.kind != new.kind:
        changes.append(f"kind: {old.kind} → {new.kind}")
    if old.binding != new.binding:
        changes.append(f"binding: {old.binding} → {new.binding}")
    if old.size is not None and new.size is not None and old.size != new.size:
        changes.append(f"size: {old.size} → {new.size}")
    if old.section is not None and new.section is not None and old.section != new.section:
        changes.append(f"section: {old.section} → {new.section}")
    return tuple(changes)


def diff_symbols(
    old_symbols: Iterable[Symbol],
    new_symbols: Iterable[Symbol],
    focus_prefix: str | None = None,
    ignore: NamePredicate | None = None,
) -> SymbolDiff:
    """Partition the union of both symbol tables into added/removed/changed/unchanged."""
    old_list = _select(old_symbols, focus_prefix, ignore)
    new_list = _select(new_symbols, focus_prefix, ignore)

    # Duplicate names collapse to the last one seen.
    old_map = {s.name: s for s in old_list}
    new_map = {s.name: s for s in new_list}

    added = tuple(new_map[name] for name in sorted(new_map.keys() - old_map.keys()))
    removed = tuple(old_map[name] for name in sorted(old_map.keys() - new_map.keys()))

    changed: list[SymbolChange] = []
    unchanged: list[Symbol] = []
    for name in sorted(old_map.keys() & new_map.keys()):
        old_sym, new_sym = old_map[name], new_map[name]
        changes = describe_changes(old_sym, new_sym)
        if changes:
            changed.append(SymbolChange(name, old_sym, new_sym, changes))
        else:
            unchanged.append(old_sym)

    log.debug(
        "symbols_compared",
        old=len(old_list),
        new=len(new_list),
        added=len(added),
        removed=len(removed),
        changed=len(changed),
    )
    return SymbolDiff(
        old_total=len(old_list),
        new_total=len(new_list),
        added=added,
        removed=removed,
        changed=tuple(changed),
        unchanged=tuple(unchanged),
    )


def symbol_stats(diff: SymbolDiff) -> SymbolDiffStats:
    return SymbolDiffStats(
        total_old=diff.old_total,
        total_new=diff.new_total,
        added=len(diff.added),
        removed=len(diff.removed),
        changed=len(diff.changed),
        unchanged=len(diff.unchanged),
        added_functions=sum(1 for s in diff.added if s.is_function),
        removed_functions=sum(1 for s in diff.removed if s.is_function),
        changed_functions=sum(1 for c in diff.changed if c.old_symbol.is_function),
        added_data=sum(1 for s in diff.added if s.is_data),
        removed_data=sum(1 for s in diff.removed if s.is_data),
        changed_data=sum(1 for c in diff.changed if c.old_symbol.is_data),
    )

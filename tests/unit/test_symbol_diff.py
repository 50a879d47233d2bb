"""Tests for symbol table comparison."""

import pytest
from conftest import func_symbol

from bindiff.analysis.patterns import IgnorePatterns
from bindiff.analysis.symbol_diff import describe_changes, diff_symbols, symbol_stats
from bindiff.errors import BinDiffError, PredicateError
from bindiff.extraction.artifacts import Symbol, SymbolBinding, SymbolKind


def test_self_diff_has_no_changes():
    symbols = [func_symbol("main"), Symbol("counter", SymbolKind.DATA, SymbolBinding.GLOBAL)]
    diff = diff_symbols(symbols, symbols)
    assert not diff.has_changes
    assert len(diff.unchanged) == 2


def test_added_removed_sorted_by_name():
    old = [func_symbol("b"), func_symbol("a"), func_symbol("keep")]
    new = [func_symbol("keep"), func_symbol("z"), func_symbol("c")]
    diff = diff_symbols(old, new)
    assert [s.name for s in diff.added] == ["c", "z"]
    assert [s.name for s in diff.removed] == ["a", "b"]


def test_address_change_alone_is_not_a_change():
    diff = diff_symbols([func_symbol("main", 0x1000)], [func_symbol("main", 0x2000)])
    assert not diff.has_changes


def test_kind_and_binding_changes_are_described():
    old = Symbol("x", SymbolKind.DATA, SymbolBinding.LOCAL)
    new = Symbol("x", SymbolKind.FUNCTION, SymbolBinding.GLOBAL)
    assert describe_changes(old, new) == ("kind: data → function", "binding: local → global")


def test_size_compared_only_when_both_known():
    assert describe_changes(func_symbol("f", size=10), func_symbol("f")) == ()
    assert describe_changes(func_symbol("f", size=10), func_symbol("f", size=12)) == ("size: 10 → 12",)


def test_duplicate_names_last_wins():
    old = [
        Symbol("dup", SymbolKind.DATA, SymbolBinding.GLOBAL),
        func_symbol("dup"),
    ]
    new = [func_symbol("dup")]
    diff = diff_symbols(old, new)
    assert not diff.has_changes
    assert diff.old_total == 2


def test_focus_then_ignore():
    old = [func_symbol("app_main"), func_symbol("GCC_except_table12"), func_symbol("other")]
    new = [func_symbol("app_main")]
    ignore = IgnorePatterns(("GCC_except_table*",))
    diff = diff_symbols(old, new, ignore=ignore)
    assert [s.name for s in diff.removed] == ["other"]
    diff = diff_symbols(old, new, focus_prefix="app")
    assert not diff.has_changes


def test_stats():
    old = [func_symbol("gone"), Symbol("data", SymbolKind.DATA), func_symbol("same")]
    new = [func_symbol("same"), func_symbol("fresh"), Symbol("bss", SymbolKind.BSS)]
    stats = symbol_stats(diff_symbols(old, new))
    assert stats.added == 2
    assert stats.removed == 2
    assert stats.added_functions == 1
    assert stats.added_data == 1
    assert stats.removed_functions == 1
    assert stats.removed_data == 1
    assert stats.unchanged == 1
    assert round(stats.unchanged_percent, 1) == 33.3


def test_failing_ignore_predicate_is_reported():
    def exploding(name):
        raise RuntimeError("boom")

    with pytest.raises(PredicateError, match="'a'") as excinfo:
        diff_symbols([func_symbol("a")], [func_symbol("a")], ignore=exploding)
    assert isinstance(excinfo.value, BinDiffError)
    assert isinstance(excinfo.value.__cause__, RuntimeError)

"""Tests for whole-artifact function comparison."""

import pytest
from conftest import function

from bindiff.analysis.function_compare import compare_functions, filter_names, summarize_functions
from bindiff.analysis.patterns import IgnorePatterns
from bindiff.analysis.results import FunctionStatus
from bindiff.errors import PredicateError


def _fns(*functions):
    return {fn.name: fn for fn in functions}


def test_buckets_are_partitioned_and_sorted():
    old = _fns(
        function("main", "push %rbp", "ret"),
        function("zeta", "ret"),
        function("alpha", "ret"),
        function("gone", "nop", "ret"),
    )
    new = _fns(
        function("main", "push %rbp", "nop", "ret"),
        function("zeta", "ret"),
        function("alpha", "ret"),
        function("fresh", "ret"),
    )
    diff = compare_functions(old, new)
    assert [r.name for r in diff.identical] == ["alpha", "zeta"]
    assert [r.name for r in diff.modified] == ["main"]
    assert [r.name for r in diff.added] == ["fresh"]
    assert [r.name for r in diff.removed] == ["gone"]
    assert diff.total_old == 4
    assert diff.total_new == 4
    assert diff.identical_percent == 50.0


def test_modified_entry_carries_stats_and_counts():
    old = _fns(function("main", "push %rbp", "ret"))
    new = _fns(function("main", "push %rbp", "call 1030 <puts@plt>", "ret"))
    (entry,) = compare_functions(old, new).modified
    assert entry.status is FunctionStatus.MODIFIED
    assert entry.old_instruction_count == 2
    assert entry.new_instruction_count == 3
    assert entry.stats.added == 1
    assert entry.instruction_diff.changed_calls


def test_added_and_removed_carry_one_count():
    diff = compare_functions(_fns(function("a", "ret")), _fns(function("b", "nop", "ret")))
    assert diff.removed[0].old_instruction_count == 1
    assert diff.removed[0].new_instruction_count is None
    assert diff.added[0].new_instruction_count == 2
    assert diff.added[0].old_instruction_count is None


def test_oversized_bodies_skip_line_stats():
    old = _fns(function("big", *["nop"] * 10))
    new = _fns(function("big", *["nop"] * 9, "ret"))
    (entry,) = compare_functions(old, new, max_instructions=5).modified
    assert entry.stats is None
    assert entry.instruction_diff is not None


def test_self_comparison_is_all_identical():
    fns = _fns(function("a", "push %rbp", "ret"), function("b", "ret"))
    diff = compare_functions(fns, fns)
    assert not diff.has_changes
    assert len(diff.identical) == 2


def test_focus_and_ignore_filters():
    fns = _fns(
        function("app_main", "ret"),
        function("app_helper", "ret"),
        function("lib_init", "ret"),
    )
    selected = filter_names(fns, focus_prefix="app_", ignore=IgnorePatterns(("*helper",)))
    assert list(selected) == ["app_main"]


def test_focus_filter_applies_to_both_sides():
    old = _fns(function("app_main", "ret"), function("lib_gone", "ret"))
    new = _fns(function("app_main", "ret"))
    diff = compare_functions(old, new, focus_prefix="app")
    assert not diff.removed


def test_summary_counts_signals():
    old = _fns(function("f", "call 1030 <puts@plt>", "ret"), function("g", "mov $0x1,%eax", "ret"))
    new = _fns(function("f", "jmp 0x2000", "ret"), function("g", "mov $0x1,%eax", "nop", "ret"))
    summary = summarize_functions(compare_functions(old, new))
    assert summary.modified == 2
    assert summary.modified_with_call_changes == 1
    assert summary.modified_with_control_flow_changes == 1


def test_failing_ignore_predicate_is_reported():
    def exploding(name):
        raise KeyError(name)

    fns = _fns(function("main", "ret"))
    with pytest.raises(PredicateError):
        compare_functions(fns, fns, ignore=exploding)
    with pytest.raises(PredicateError):
        filter_names(fns, ignore=exploding)


def test_address_loading_offsets_do_not_make_a_function_modified():
    old = _fns(function("load", "adrp x0, <sym+0x40>", "ret"))
    new = _fns(function("load", "adrp x0, <other_sym+0x8>", "ret"))
    diff = compare_functions(old, new)
    assert [f.name for f in diff.identical] == ["load"]
    assert diff.identical[0].status is FunctionStatus.IDENTICAL
    assert not diff.modified

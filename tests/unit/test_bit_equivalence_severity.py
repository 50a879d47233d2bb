"""Tests for byte identity and the severity policy."""

from conftest import function

from bindiff.analysis.bit_equivalence import check_bit_equivalence, check_files, hash_file
from bindiff.analysis.function_compare import compare_functions
from bindiff.analysis.results import FunctionComparisonResult, FunctionDiff, FunctionStatus, Severity
from bindiff.analysis.severity import classify_severity
from bindiff.analysis.string_diff import diff_strings
from bindiff.config.models import SeverityConfig


def _added(n):
    return tuple(
        FunctionComparisonResult(f"new{i}", FunctionStatus.ONLY_IN_NEW, new_instruction_count=1)
        for i in range(n)
    )


def _modified(n):
    return tuple(FunctionComparisonResult(f"mod{i}", FunctionStatus.MODIFIED) for i in range(n))


DIFFERENT = check_bit_equivalence(b"old", b"new")


def test_identical_bytes():
    result = check_bit_equivalence(b"\x7fELF", b"\x7fELF")
    assert result.identical
    assert result.old_hash == result.new_hash
    assert result.size_delta == 0


def test_different_bytes_report_both_sizes():
    result = check_bit_equivalence(b"abc", b"abcdef")
    assert not result.identical
    assert result.old_size == 3
    assert result.new_size == 6
    assert result.size_delta == 3


def test_hash_file_matches_in_memory(tmp_path):
    path = tmp_path / "blob"
    data = bytes(range(256)) * 10
    path.write_bytes(data)
    digest, size = hash_file(path)
    assert size == len(data)
    assert digest == check_bit_equivalence(data, data).old_hash


def test_check_files(tmp_path):
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_bytes(b"same")
    b.write_bytes(b"same")
    assert check_files(a, b).identical


def test_identical_wins_over_everything():
    identical = check_bit_equivalence(b"x", b"x")
    diff = FunctionDiff(removed=(FunctionComparisonResult("gone", FunctionStatus.ONLY_IN_OLD),))
    assert classify_severity(identical, function_diff=diff) is Severity.IDENTICAL


def test_removed_function_is_high():
    old = {"main": function("main", "ret"), "helper": function("helper", "ret")}
    new = {"main": function("main", "ret")}
    assert classify_severity(DIFFERENT, function_diff=compare_functions(old, new)) is Severity.HIGH


def test_added_threshold():
    assert classify_severity(DIFFERENT, function_diff=FunctionDiff(added=_added(5))) is Severity.LOW
    assert classify_severity(DIFFERENT, function_diff=FunctionDiff(added=_added(6))) is Severity.MEDIUM


def test_modified_threshold():
    assert classify_severity(DIFFERENT, function_diff=FunctionDiff(modified=_modified(10))) is Severity.LOW
    assert classify_severity(DIFFERENT, function_diff=FunctionDiff(modified=_modified(11))) is Severity.MEDIUM


def test_string_only_change_is_low():
    strings = diff_strings(["a"], ["b"])
    assert classify_severity(DIFFERENT, string_diff=strings) is Severity.LOW


def test_policy_thresholds_are_configurable():
    policy = SeverityConfig(max_added_functions=0, max_modified_functions=0)
    diff = FunctionDiff(added=_added(1))
    assert classify_severity(DIFFERENT, function_diff=diff, policy=policy) is Severity.MEDIUM

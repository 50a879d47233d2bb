"""Tests for the end-to-end comparison pipeline."""

import pytest
from conftest import FakeRunner

from bindiff.analysis.patterns import IgnorePatterns
from bindiff.analysis.pipeline import run_comparison, select_functions
from bindiff.analysis.results import Severity
from bindiff.config.loader import apply_overrides
from bindiff.errors import (
    ArchitectureMismatchError,
    ExtractionError,
    InvalidPatternError,
    PredicateError,
)
from bindiff.extraction.runner import ProcessResult

ELF_INFO = "ELF 64-bit LSB pie executable, x86-64, version 1 (SYSV)\n"


def test_identical_files_short_circuit(tmp_path, sample_config):
    old = tmp_path / "a"
    new = tmp_path / "b"
    old.write_bytes(b"same bytes")
    new.write_bytes(b"same bytes")
    runner = FakeRunner({"file": ELF_INFO})

    result = run_comparison(old, new, sample_config, runner=runner)

    assert result.is_identical
    assert result.severity is Severity.IDENTICAL
    assert result.symbol_diff is None
    assert result.function_diff is None
    assert {call[0] for call in runner.calls} == {"file"}


def test_full_comparison(binary_pair, tool_runner, sample_config):
    old, new = binary_pair
    result = run_comparison(old, new, sample_config, runner=tool_runner)

    assert not result.is_identical
    assert result.severity is Severity.HIGH
    fd = result.function_diff
    assert [f.name for f in fd.identical] == ["main"]
    assert [f.name for f in fd.modified] == ["helper"]
    assert [f.name for f in fd.removed] == ["legacy"]
    assert [s.name for s in result.symbol_diff.removed] == ["legacy"]
    assert result.string_diff.added == ("new only",)
    assert result.string_diff.removed == ("old only",)
    assert result.binary_info.old_file_info.startswith("ELF 64-bit")


def test_ignore_predicate_lowers_severity(binary_pair, tool_runner, sample_config):
    old, new = binary_pair
    result = run_comparison(
        old, new, sample_config, runner=tool_runner, ignore=IgnorePatterns(("legacy",))
    )
    assert result.severity is Severity.LOW
    assert not result.function_diff.removed


def test_focus_prefix(binary_pair, tool_runner, sample_config):
    old, new = binary_pair
    result = run_comparison(old, new, sample_config, runner=tool_runner, focus_prefix="main")
    assert not result.function_diff.has_changes
    assert not result.symbol_diff.has_changes


def test_architecture_mismatch_aborts(binary_pair, sample_config):
    old, new = binary_pair
    infos = {str(old): "Mach-O 64-bit executable arm64", str(new): "Mach-O 64-bit executable x86_64"}
    runner = FakeRunner({"file": lambda cmd, *args: ProcessResult(0, infos[args[-1]])})
    with pytest.raises(ArchitectureMismatchError):
        run_comparison(old, new, sample_config, runner=runner)


def test_missing_input_file(tmp_path, sample_config):
    present = tmp_path / "present"
    present.write_bytes(b"x")
    with pytest.raises(ExtractionError, match="does not exist"):
        run_comparison(tmp_path / "absent", present, sample_config, runner=FakeRunner())


def test_extraction_failure_aborts(binary_pair, sample_config):
    old, new = binary_pair
    runner = FakeRunner({"file": ELF_INFO})
    with pytest.raises(ExtractionError):
        run_comparison(old, new, sample_config, runner=runner)


def test_strings_failure_is_fatal_by_default(binary_pair, tool_runner, sample_config):
    old, new = binary_pair
    tool_runner.responses["strings"] = ProcessResult(1, "", "strings: boom")
    with pytest.raises(ExtractionError, match="strings"):
        run_comparison(old, new, sample_config, runner=tool_runner)


def test_optional_strings_failure_skips_string_diff(binary_pair, tool_runner, sample_config):
    old, new = binary_pair
    tool_runner.responses["strings"] = ProcessResult(1, "", "strings: boom")
    config = apply_overrides(sample_config, {"extraction.strings_required": False})
    result = run_comparison(old, new, config, runner=tool_runner)
    assert result.string_diff is None
    assert result.function_diff is not None
    assert any("String extraction failed" in w for w in result.warnings)


def test_select_functions():
    old = ["main", "log_info", "log_error"]
    new = ["main", "log_warn"]
    assert select_functions(old, new, "log_") == ["log_error", "log_info", "log_warn"]
    assert select_functions(old, new, "^main$") == ["main"]
    assert select_functions(old, new, "log_", ignore=IgnorePatterns(("log_e*",))) == ["log_info", "log_warn"]
    assert select_functions(old, new, "o", focus_prefix="log") == ["log_error", "log_info", "log_warn"]


def test_select_functions_bad_regex():
    with pytest.raises(InvalidPatternError):
        select_functions(["a"], [], "(unclosed")


def _exploding(name):
    raise RuntimeError("boom")


def test_select_functions_failing_predicate():
    with pytest.raises(PredicateError, match="boom") as excinfo:
        select_functions(["main"], ["main"], "main", ignore=_exploding)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_failing_predicate_aborts_comparison(binary_pair, tool_runner, sample_config):
    old, new = binary_pair
    with pytest.raises(PredicateError):
        run_comparison(old, new, sample_config, runner=tool_runner, ignore=_exploding)


def test_missing_tool_aborts_before_running_anything(binary_pair, sample_config):
    old, new = binary_pair
    runner = FakeRunner({"file": ELF_INFO}, missing=("nm",))
    with pytest.raises(ExtractionError, match="Missing required system tools: nm"):
        run_comparison(old, new, sample_config, runner=runner)
    assert runner.calls == []


def test_any_disassembler_is_enough(binary_pair, tool_runner, sample_config):
    old, new = binary_pair
    tool_runner.missing = {"llvm-objdump", "otool"}
    assert run_comparison(old, new, sample_config, runner=tool_runner).function_diff is not None

    tool_runner.missing |= {"objdump"}
    with pytest.raises(ExtractionError, match="No disassembler found"):
        run_comparison(old, new, sample_config, runner=tool_runner)


def test_strings_tool_only_required_when_strings_are(binary_pair, tool_runner, sample_config):
    old, new = binary_pair
    tool_runner.missing = {"strings"}
    with pytest.raises(ExtractionError, match="strings"):
        run_comparison(old, new, sample_config, runner=tool_runner)

    config = apply_overrides(sample_config, {"extraction.strings_required": False})
    assert run_comparison(old, new, config, runner=tool_runner).symbol_diff is not None


def test_elf_backend_needs_no_tools(tmp_path, sample_config):
    old = tmp_path / "a"
    new = tmp_path / "b"
    old.write_bytes(b"same")
    new.write_bytes(b"same")
    config = apply_overrides(sample_config, {"extraction.backend": "elf"})
    runner = FakeRunner(missing=("file", "nm", "objdump", "llvm-objdump", "otool", "strings"))
    # Not ELF, so the failure comes from the loader rather than the tool check.
    with pytest.raises(ExtractionError, match="Not a readable ELF file"):
        run_comparison(old, new, config, runner=runner)

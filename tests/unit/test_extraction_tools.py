"""Tests for strings extraction, pre-flight validation and process runners."""

import pytest
from conftest import FakeRunner

from bindiff.errors import ArchitectureMismatchError, ExtractionError
from bindiff.extraction.runner import CachingProcessRunner, ProcessResult, SubprocessRunner
from bindiff.extraction.strings import StringExtractor
from bindiff.extraction.validation import (
    extract_arch,
    missing_tools,
    validate_architecture_match,
    validate_file,
    validate_system_tools,
)


def test_strings_extractor_trims_and_drops_blanks(tmp_path):
    runner = FakeRunner({"strings": "  hello world \n\n__TEXT\n"})
    extracted = StringExtractor(runner).extract(tmp_path / "bin", min_length=6)
    assert extracted.strings == ("hello world", "__TEXT")
    assert runner.calls[0][:3] == ("strings", "-n", "6")


def test_strings_failure_raises(tmp_path):
    with pytest.raises(ExtractionError):
        StringExtractor(FakeRunner()).extract(tmp_path / "bin")


@pytest.mark.parametrize(
    "info,arch",
    [
        ("Mach-O 64-bit executable arm64", "arm64"),
        ("ELF 64-bit LSB pie executable, x86-64, version 1 (SYSV)", "x86_64"),
        ("Mach-O 64-bit executable x86_64", "x86_64"),
        ("ELF 32-bit LSB executable, Intel 80386", "x86"),
        ("ELF 64-bit LSB executable, ARM aarch64, version 1", "aarch64"),
        ("ELF 32-bit LSB executable, ARM, EABI5 version 1", "arm"),
        ("ASCII text", "unknown"),
    ],
)
def test_extract_arch(info, arch):
    assert extract_arch(info) == arch


def test_architecture_mismatch(tmp_path):
    with pytest.raises(ArchitectureMismatchError) as excinfo:
        validate_architecture_match(
            "Mach-O 64-bit executable arm64",
            "Mach-O 64-bit executable x86_64",
            tmp_path / "old",
            tmp_path / "new",
        )
    message = str(excinfo.value)
    assert "arm64" in message and "x86_64" in message
    assert isinstance(excinfo.value, ExtractionError)


def test_matching_architecture_returned(tmp_path):
    arch = validate_architecture_match("x86-64", "x86_64", tmp_path / "a", tmp_path / "b")
    assert arch == "x86_64"


def test_validate_file(tmp_path):
    path = tmp_path / "bin"
    path.write_bytes(b"\0")
    assert validate_file(path) == path
    with pytest.raises(ExtractionError, match="does not exist"):
        validate_file(tmp_path / "missing", "Old")
    with pytest.raises(ExtractionError, match="not a regular file"):
        validate_file(tmp_path, "New")


def test_validate_system_tools_reports_missing():
    runner = FakeRunner(missing=("nm", "file"))
    assert missing_tools(runner, ["file", "objdump", "nm"]) == ["file", "nm"]
    with pytest.raises(ExtractionError, match="Missing required system tools: nm"):
        validate_system_tools(runner, ["objdump", "nm"])
    validate_system_tools(runner, ["objdump"])


def test_subprocess_runner_availability():
    runner = SubprocessRunner(timeout=5)
    assert not runner.available("definitely-not-a-tool-xyz")
    assert not CachingProcessRunner(runner).available("definitely-not-a-tool-xyz")


def test_subprocess_runner_missing_executable():
    result = SubprocessRunner(timeout=5).run("definitely-not-a-tool-xyz", "--version")
    assert not result.ok
    assert result.returncode == 127


def test_caching_runner_memoizes():
    inner = FakeRunner({"nm": "0000 T main\n"})
    runner = CachingProcessRunner(inner)
    first = runner.run("nm", "-p", "a.out")
    second = runner.run("nm", "-p", "a.out")
    assert first is second
    assert len(inner.calls) == 1


def test_process_result_failure_description():
    result = ProcessResult(2, "", "  boom \n")
    assert not result.ok
    assert result.describe_failure() == "exit 2: boom"

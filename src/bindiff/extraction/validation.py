"""Pre-flight checks run before anything is extracted."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from bindiff.errors import ArchitectureMismatchError, ExtractionError
from bindiff.extraction.runner import ProcessRunner

# First match wins; "aarch64" descriptions also contain "ARM".
_ARCH_MARKERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("arm64",), "arm64"),
    (("x86_64", "x86-64"), "x86_64"),
    (("i386", "i686", "80386"), "x86"),
    (("aarch64",), "aarch64"),
    ((", ARM,", " ARM "), "arm"),
)


def validate_file(path: Path, label: str = "Input") -> Path:
    path = Path(path)
    if not path.exists():
        raise ExtractionError(f"{label} binary does not exist: {path}")
    if not path.is_file():
        raise ExtractionError(f"{label} path is not a regular file: {path}")
    return path


def extract_arch(file_info: str) -> str:
    """Map a ``file -b`` description (or ELF machine name) to an architecture tag."""
    for markers, arch in _ARCH_MARKERS:
        if any(marker in file_info for marker in markers):
            return arch
    return "unknown"


def validate_architecture_match(
    old_info: str, new_info: str, old_path: Path, new_path: Path
) -> str:
    """Return the shared architecture or raise `ArchitectureMismatchError`."""
    old_arch = extract_arch(old_info)
    new_arch = extract_arch(new_info)
    if old_arch != new_arch:
        raise ArchitectureMismatchError(str(old_path), old_arch, str(new_path), new_arch)
    return old_arch


def describe_file(path: Path, runner: ProcessRunner, tool: str = "file") -> str:
    result = runner.run(tool, "-b", str(path))
    if not result.ok:
        raise ExtractionError(f"Failed to get file info for {path}: {result.describe_failure()}")
    return result.stdout.strip()


def missing_tools(runner: ProcessRunner, tools: Iterable[str]) -> list[str]:
    return [tool for tool in tools if not runner.available(tool)]


def validate_system_tools(runner: ProcessRunner, tools: Iterable[str]) -> None:
    missing = missing_tools(runner, tools)
    if missing:
        raise ExtractionError(f"Missing required system tools: {', '.join(missing)}")

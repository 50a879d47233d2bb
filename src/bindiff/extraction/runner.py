"""Running external binutils-style tools.

Runners never raise for tool failures: a missing executable, a timeout or a
non-zero exit all come back as a failed `ProcessResult`, and the caller
decides whether that aborts extraction.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from bindiff.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe_failure(self) -> str:
        return f"exit {self.returncode}: {self.stderr.strip()[:500]}"


class ProcessRunner(Protocol):
    def run(self, cmd: str, *args: str, cwd: Path | None = None) -> ProcessResult: ...

    def available(self, tool: str) -> bool: ...


class SubprocessRunner:
    """Runs commands with `subprocess.run`, capturing text output."""

    def __init__(self, timeout: int | None = 300) -> None:
        self.timeout = timeout

    def run(self, cmd: str, *args: str, cwd: Path | None = None) -> ProcessResult:
        try:
            proc = subprocess.run(
                [cmd, *args],
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                cwd=cwd,
                check=False,
            )
        except FileNotFoundError:
            return ProcessResult(127, "", f"{cmd}: command not found")
        except subprocess.TimeoutExpired:
            return ProcessResult(-1, "", f"{cmd}: timed out after {self.timeout}s")
        except OSError as exc:
            return ProcessResult(-1, "", f"{cmd}: {exc}")
        return ProcessResult(proc.returncode, proc.stdout, proc.stderr)

    def available(self, tool: str) -> bool:
        return shutil.which(tool) is not None


class LoggingProcessRunner:
    """Logs every invocation and its outcome, delegating the actual run."""

    def __init__(self, delegate: ProcessRunner) -> None:
        self.delegate = delegate

    def run(self, cmd: str, *args: str, cwd: Path | None = None) -> ProcessResult:
        log.debug("running_tool", cmd=" ".join([cmd, *args]))
        result = self.delegate.run(cmd, *args, cwd=cwd)
        if result.ok:
            log.debug("tool_ok", cmd=cmd, stdout_bytes=len(result.stdout))
        else:
            log.warning("tool_failed", cmd=cmd, returncode=result.returncode, stderr=result.stderr[:200])
        return result

    def available(self, tool: str) -> bool:
        found = self.delegate.available(tool)
        log.debug("tool_lookup", tool=tool, found=found)
        return found


class CachingProcessRunner:
    """Memoizes results per argument vector; useful when one file is read twice."""

    def __init__(self, delegate: ProcessRunner) -> None:
        self.delegate = delegate
        self._cache: dict[tuple[str, ...], ProcessResult] = {}

    def run(self, cmd: str, *args: str, cwd: Path | None = None) -> ProcessResult:
        key = (str(cwd or ""), cmd, *args)
        if key not in self._cache:
            self._cache[key] = self.delegate.run(cmd, *args, cwd=cwd)
        return self._cache[key]

    def available(self, tool: str) -> bool:
        return self.delegate.available(tool)

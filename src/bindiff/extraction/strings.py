"""Printable string literals via `strings`."""

from __future__ import annotations

from pathlib import Path

from bindiff.config.defaults import DEFAULT_STRING_MIN_LENGTH
from bindiff.errors import ExtractionError
from bindiff.extraction.artifacts import ExtractedStrings
from bindiff.extraction.runner import ProcessRunner
from bindiff.utils.logging import get_logger

log = get_logger(__name__)


def parse_strings_output(output: str) -> ExtractedStrings:
    lines = (line.strip() for line in output.splitlines())
    return ExtractedStrings(tuple(line for line in lines if line))


class StringExtractor:
    def __init__(self, runner: ProcessRunner, tool: str = "strings") -> None:
        self.runner = runner
        self.tool = tool

    def extract(self, path: Path, min_length: int = DEFAULT_STRING_MIN_LENGTH) -> ExtractedStrings:
        result = self.runner.run(self.tool, "-n", str(min_length), str(path))
        if not result.ok:
            raise ExtractionError(f"strings command failed ({result.describe_failure()})")
        strings = parse_strings_output(result.stdout)
        log.info("strings_extracted", path=str(path), count=strings.count)
        return strings

"""Glob patterns for excluding symbols and functions from a comparison.

Only two wildcards exist: ``*`` (any run of characters, including none) and
``?`` (exactly one character). Everything else, ``[`` and ``.`` included, is
literal. Matching is anchored at both ends and case sensitive.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from bindiff.errors import BinDiffError, IgnoreFileError, InvalidPatternError, PredicateError

NamePredicate = Callable[[str], bool]


@lru_cache(maxsize=1024)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    if not pattern:
        raise InvalidPatternError("Empty ignore pattern")
    parts: list[str] = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def matches_glob(pattern: str, name: str) -> bool:
    return glob_to_regex(pattern).fullmatch(name) is not None


def is_ignored(ignore: NamePredicate | None, name: str) -> bool:
    """Ask the ignore predicate about `name`, turning its failures into `PredicateError`."""
    if ignore is None:
        return False
    try:
        return bool(ignore(name))
    except BinDiffError:
        raise
    except Exception as exc:
        raise PredicateError(f"Ignore predicate failed for {name!r}: {exc}") from exc



@dataclass(frozen=True)
class IgnorePatterns:
    """A set of globs usable directly as an ignore predicate."""

    patterns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for pattern in self.patterns:
            glob_to_regex(pattern)

    def __call__(self, name: str) -> bool:
        return self.matches(name)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def matches(self, name: str) -> bool:
        return any(matches_glob(pattern, name) for pattern in self.patterns)

    @classmethod
    def from_lines(cls, lines: list[str]) -> IgnorePatterns:
        stripped = (line.strip() for line in lines)
        return cls(tuple(line for line in stripped if line and not line.startswith("#")))

    @classmethod
    def from_file(cls, path: str | Path) -> IgnorePatterns:
        """Load one pattern per line; blank lines and ``#`` comments are skipped."""
        p = Path(path)
        if not p.exists():
            raise IgnoreFileError(f"Ignore file does not exist: {p}")
        if not p.is_file():
            raise IgnoreFileError(f"Ignore file is not a regular file: {p}")
        return cls.from_lines(p.read_text().splitlines())

"""Exception types raised across the bindiff package."""

from __future__ import annotations


class BinDiffError(Exception):
    """Base class for every failure bindiff reports to its caller."""


class InvalidPatternError(BinDiffError, ValueError):
    """A glob or regular expression supplied by the caller is malformed."""


class IgnoreFileError(BinDiffError):
    """The ignore-pattern file is missing or not a regular file."""


class ExtractionError(BinDiffError):
    """An artifact could not be fully extracted.

    Raised instead of returning a partially populated extraction, so the diff
    engines never run against incomplete input.
    """


class ArchitectureMismatchError(ExtractionError):
    def __init__(self, old_path: str, old_arch: str, new_path: str, new_arch: str) -> None:
        self.old_arch = old_arch
        self.new_arch = new_arch
        super().__init__(
            f"Architecture mismatch:\n"
            f"  Old ({old_path}): {old_arch}\n"
            f"  New ({new_path}): {new_arch}\n"
            f"Cannot compare binaries with different architectures."
        )


class PredicateError(BinDiffError):
    """A caller-supplied name predicate raised instead of answering."""

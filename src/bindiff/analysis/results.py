"""Frozen result records produced by the diff engines.

Every record is built once per comparison run and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from bindiff.analysis.sequence_diff import Added, Context, DiffLine, Removed
from bindiff.extraction.artifacts import Instruction, Symbol


# -- Bit equivalence ---------------------------------------------------------


@dataclass(frozen=True)
class BitEquivalenceResult:
    identical: bool
    old_hash: str
    new_hash: str
    old_size: int
    new_size: int

    @property
    def size_delta(self) -> int:
        return self.new_size - self.old_size


# -- Symbols -----------------------------------------------------------------


@dataclass(frozen=True)
class SymbolChange:
    name: str
    old_symbol: Symbol
    new_symbol: Symbol
    changes: tuple[str, ...]


@dataclass(frozen=True)
class SymbolDiff:
    old_total: int
    new_total: int
    added: tuple[Symbol, ...] = ()
    removed: tuple[Symbol, ...] = ()
    changed: tuple[SymbolChange, ...] = ()
    unchanged: tuple[Symbol, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.changed)


@dataclass(frozen=True)
class SymbolDiffStats:
    total_old: int
    total_new: int
    added: int
    removed: int
    changed: int
    unchanged: int
    added_functions: int
    removed_functions: int
    changed_functions: int
    added_data: int
    removed_data: int
    changed_data: int

    @property
    def unchanged_percent(self) -> float:
        if self.total_old == 0:
            return 100.0
        return self.unchanged / self.total_old * 100


# -- Function bodies ---------------------------------------------------------


@dataclass(frozen=True)
class DiffStats:
    total_old: int
    total_new: int
    added: int
    removed: int
    unchanged: int

    @property
    def changed_percent(self) -> float:
        if self.total_old + self.total_new == 0:
            return 0.0
        return (self.added + self.removed) / (self.total_old + self.total_new) * 100


@dataclass(frozen=True)
class Hunk:
    """A contiguous, context-padded window of an edit script.

    Line numbers are 1-based positions within the old and new instruction
    lists, as in a unified diff header. A side with no lines in the hunk
    reports the line after which the other side's lines sit (0 at the top).
    """

    lines: tuple[DiffLine, ...]
    old_start: int
    old_count: int
    new_start: int
    new_count: int

    @property
    def header(self) -> str:
        return f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"


@dataclass(frozen=True)
class DetailedFunctionDiff:
    function_name: str
    old_instructions: tuple[Instruction, ...]
    new_instructions: tuple[Instruction, ...]
    diff_lines: tuple[DiffLine, ...]
    stats: DiffStats

    @property
    def has_changes(self) -> bool:
        return self.stats.added > 0 or self.stats.removed > 0

    def instruction_for(self, line: DiffLine) -> Instruction:
        """The instruction a diff line came from (old side only for removals)."""
        if isinstance(line, Removed):
            return self.old_instructions[line.old_index]
        if isinstance(line, Added):
            return self.new_instructions[line.new_index]
        if isinstance(line, Context):
            return self.new_instructions[line.new_index]
        raise TypeError(f"Unknown diff line variant: {type(line).__name__}")


@dataclass(frozen=True)
class InstructionDiff:
    """Set-based summary of what changed inside a modified function.

    Built from the *sets* of normalized keys, so a pure reordering yields
    empty `added`/`removed`. Only used for the control-flow and call signals.
    """

    added: tuple[Instruction, ...]
    removed: tuple[Instruction, ...]
    common_count: int
    changed_control_flow: bool
    changed_calls: bool

    @property
    def changed_count(self) -> int:
        return len(self.added) + len(self.removed)


class FunctionStatus(str, Enum):
    IDENTICAL = "identical"
    MODIFIED = "modified"
    ONLY_IN_OLD = "only_in_old"
    ONLY_IN_NEW = "only_in_new"


@dataclass(frozen=True)
class FunctionComparisonResult:
    name: str
    status: FunctionStatus
    old_instruction_count: int | None = None
    new_instruction_count: int | None = None
    instruction_diff: InstructionDiff | None = None
    stats: DiffStats | None = None


@dataclass(frozen=True)
class FunctionDiff:
    identical: tuple[FunctionComparisonResult, ...] = ()
    modified: tuple[FunctionComparisonResult, ...] = ()
    added: tuple[FunctionComparisonResult, ...] = ()
    removed: tuple[FunctionComparisonResult, ...] = ()

    @property
    def total_old(self) -> int:
        return len(self.identical) + len(self.modified) + len(self.removed)

    @property
    def total_new(self) -> int:
        return len(self.identical) + len(self.modified) + len(self.added)

    @property
    def identical_percent(self) -> float:
        if self.total_old == 0:
            return 100.0
        return len(self.identical) / self.total_old * 100

    @property
    def has_changes(self) -> bool:
        return bool(self.modified or self.added or self.removed)


@dataclass(frozen=True)
class FunctionDiffSummary:
    total_old: int
    total_new: int
    identical: int
    modified: int
    added: int
    removed: int
    identical_percent: float
    modified_with_control_flow_changes: int
    modified_with_call_changes: int


# -- Strings -----------------------------------------------------------------


@dataclass(frozen=True)
class StringDiff:
    old_count: int
    new_count: int
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    common: tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)


# -- Aggregate ---------------------------------------------------------------


class Severity(str, Enum):
    IDENTICAL = "IDENTICAL"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BinaryInfo:
    old_path: Path
    new_path: Path
    old_file_info: str = ""
    new_file_info: str = ""


@dataclass(frozen=True)
class ComparisonResult:
    binary_info: BinaryInfo
    bit_equivalence: BitEquivalenceResult
    severity: Severity
    symbol_diff: SymbolDiff | None = None
    function_diff: FunctionDiff | None = None
    string_diff: StringDiff | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_identical(self) -> bool:
        return self.bit_equivalence.identical

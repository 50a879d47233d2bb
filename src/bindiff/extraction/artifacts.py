"""Frozen dataclasses representing what extraction hands to the diff engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

CONTROL_FLOW_MNEMONICS = frozenset({
    # x86
    "jmp", "je", "jne", "jz", "jnz", "jg", "jge", "jl", "jle",
    "ja", "jae", "jb", "jbe", "jo", "jno", "js", "jns",
    "call", "callq", "ret", "retq", "retn",
    # AArch64
    "b", "bl", "blr", "br", "beq", "bne", "blt", "ble", "bgt", "bge",
    "b.eq", "b.ne", "b.lt", "b.le", "b.gt", "b.ge",
    "cbz", "cbnz", "tbz", "tbnz",
})

CALL_MNEMONICS = frozenset({"call", "callq", "bl", "blr"})


class SymbolKind(str, Enum):
    FUNCTION = "function"
    DATA = "data"
    BSS = "bss"
    READ_ONLY = "readonly"
    COMMON = "common"
    UNDEFINED = "undefined"
    WEAK = "weak"
    ABSOLUTE = "absolute"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_nm_type(cls, type_char: str) -> SymbolKind:
        return _NM_KINDS.get(type_char.upper(), cls.OTHER)


_NM_KINDS = {
    "T": SymbolKind.FUNCTION,
    "D": SymbolKind.DATA,
    "B": SymbolKind.BSS,
    "R": SymbolKind.READ_ONLY,
    "C": SymbolKind.COMMON,
    "U": SymbolKind.UNDEFINED,
    "W": SymbolKind.WEAK,
    "V": SymbolKind.WEAK,
    "A": SymbolKind.ABSOLUTE,
}


class SymbolBinding(str, Enum):
    GLOBAL = "global"
    LOCAL = "local"
    WEAK = "weak"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_nm_flag(cls, flag: str) -> SymbolBinding:
        # nm prints weak symbols as w/v (and W/V when defined); treat the
        # letter first, then the case.
        if flag in ("w", "v", "W", "V"):
            return cls.WEAK
        if flag.isupper():
            return cls.GLOBAL
        if flag.islower():
            return cls.LOCAL
        return cls.UNKNOWN


@dataclass(frozen=True)
class Symbol:
    name: str
    kind: SymbolKind = SymbolKind.OTHER
    binding: SymbolBinding = SymbolBinding.UNKNOWN
    address: int | None = None
    size: int | None = None
    section: str | None = None

    @property
    def is_function(self) -> bool:
        return self.kind is SymbolKind.FUNCTION

    @property
    def is_data(self) -> bool:
        return self.kind in (SymbolKind.DATA, SymbolKind.BSS, SymbolKind.READ_ONLY)


@dataclass(frozen=True)
class Instruction:
    address: int
    mnemonic: str
    operands: str = ""
    raw_bytes: str = ""
    raw_line: str = ""

    @property
    def text(self) -> str:
        """Mnemonic and operands as printed, without address or bytes."""
        return f"{self.mnemonic} {self.operands}".strip()

    @property
    def is_control_flow(self) -> bool:
        return self.mnemonic.lower() in CONTROL_FLOW_MNEMONICS

    @property
    def is_call(self) -> bool:
        return self.mnemonic.lower() in CALL_MNEMONICS


@dataclass(frozen=True)
class DisassembledFunction:
    name: str
    start_address: int
    instructions: tuple[Instruction, ...] = ()

    def __len__(self) -> int:
        return len(self.instructions)


@dataclass(frozen=True)
class ExtractedStrings:
    strings: tuple[str, ...] = ()

    @property
    def count(self) -> int:
        return len(self.strings)

    def as_set(self) -> frozenset[str]:
        return frozenset(self.strings)


@dataclass(frozen=True)
class ExtractedArtifact:
    """Every layer extracted from one compiled artifact.

    Only built once all layers succeeded; see `bindiff.extraction.loader`.
    """

    path: Path
    sha256: str
    size: int
    file_info: str = ""
    architecture: str = "unknown"
    symbols: tuple[Symbol, ...] = ()
    functions: dict[str, DisassembledFunction] = field(default_factory=dict)
    # None only when string extraction failed and was not required.
    strings: ExtractedStrings | None = field(default_factory=ExtractedStrings)


def functions_by_name(functions: list[DisassembledFunction]) -> dict[str, DisassembledFunction]:
    """Key functions by name; a later duplicate replaces an earlier one."""
    return {fn.name: fn for fn in functions}

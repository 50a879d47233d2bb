"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from bindiff.config.models import BinDiffConfig, DiffConfig, ExtractionConfig
from bindiff.extraction.artifacts import (
    DisassembledFunction,
    Instruction,
    Symbol,
    SymbolBinding,
    SymbolKind,
)
from bindiff.extraction.runner import ProcessResult


class FakeRunner:
    """Answers tool invocations from a table instead of spawning processes.

    Keys are ``(tool, first_arg)`` or just ``tool``; unknown commands fail
    with exit 127 like a missing executable. Every tool counts as installed
    unless it is listed in ``missing``.
    """

    def __init__(self, responses: dict | None = None, missing: tuple[str, ...] = ()) -> None:
        self.responses: dict = dict(responses or {})
        self.missing = set(missing)
        self.calls: list[tuple[str, ...]] = []

    def run(self, cmd: str, *args: str, cwd: Path | None = None) -> ProcessResult:
        self.calls.append((cmd, *args))
        for key in ((cmd, *args), (cmd, args[0]) if args else None, cmd):
            if key is not None and key in self.responses:
                response = self.responses[key]
                if callable(response):
                    return response(cmd, *args)
                if isinstance(response, ProcessResult):
                    return response
                return ProcessResult(0, response, "")
        return ProcessResult(127, "", f"{cmd}: command not found")

    def available(self, tool: str) -> bool:
        return tool not in self.missing

    def count(self, cmd: str) -> int:
        return sum(1 for call in self.calls if call[0] == cmd)


def insn(text: str, address: int = 0x1000) -> Instruction:
    """Build an instruction from ``"mnemonic operands"`` text."""
    mnemonic, _, operands = text.partition(" ")
    return Instruction(address=address, mnemonic=mnemonic, operands=operands.strip())


def function(name: str, *lines: str, start: int = 0x1000) -> DisassembledFunction:
    return DisassembledFunction(
        name=name,
        start_address=start,
        instructions=tuple(insn(line, start + 4 * i) for i, line in enumerate(lines)),
    )


def func_symbol(name: str, address: int | None = 0x1000, **kwargs) -> Symbol:
    return Symbol(
        name=name,
        kind=SymbolKind.FUNCTION,
        binding=kwargs.pop("binding", SymbolBinding.GLOBAL),
        address=address,
        **kwargs,
    )


@pytest.fixture
def sample_config() -> BinDiffConfig:
    return BinDiffConfig(
        extraction=ExtractionConfig(backend="tools", string_min_length=4),
        diff=DiffConfig(context_lines=3, max_instructions=1000),
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def binary_pair(tmp_path: Path) -> tuple[Path, Path]:
    """Two different files standing in for old and new artifacts."""
    old = tmp_path / "old.bin"
    new = tmp_path / "new.bin"
    old.write_bytes(b"\x7fELF old build")
    new.write_bytes(b"\x7fELF new build!")
    return old, new


OBJDUMP_OLD = """
old.bin:     file format elf64-x86-64


Disassembly of section .text:

0000000000001139 <main>:
    1139:\t55                   \tpush   %rbp
    113a:\t48 89 e5             \tmov    %rsp,%rbp
    113d:\te8 ee fe ff ff       \tcall   1030 <puts@plt>
    1142:\tb8 00 00 00 00       \tmov    $0x0,%eax
    1147:\t5d                   \tpop    %rbp
    1148:\tc3                   \tret

0000000000001149 <helper>:
    1149:\t31 c0                \txor    %eax,%eax
    114b:\tc3                   \tret

000000000000114c <legacy>:
    114c:\tc3                   \tret
"""

OBJDUMP_NEW = """
new.bin:     file format elf64-x86-64


Disassembly of section .text:

0000000000002139 <main>:
    2139:\t55                   \tpush   %rbp
    213a:\t48 89 e5             \tmov    %rsp,%rbp
    213d:\te8 ee fe ff ff       \tcall   2030 <puts@plt>
    2142:\tb8 00 00 00 00       \tmov    $0x0,%eax
    2147:\t5d                   \tpop    %rbp
    2148:\tc3                   \tret

0000000000002149 <helper>:
    2149:\tb8 01 00 00 00       \tmov    $0x1,%eax
    214e:\tc3                   \tret
"""

NM_OLD = """0000000000001139 T main
0000000000001149 T helper
000000000000114c T legacy
                 U puts
0000000000004010 D counter
"""

NM_NEW = """0000000000002139 T main
0000000000002149 T helper
                 U puts
0000000000004010 D counter
"""


@pytest.fixture
def tool_runner(binary_pair: tuple[Path, Path]) -> FakeRunner:
    """A runner that serves nm/objdump/strings/file output for `binary_pair`."""
    old, new = binary_pair
    per_file = {
        str(old): {"nm": NM_OLD, "objdump": OBJDUMP_OLD, "strings": "hello\nold only\n"},
        str(new): {"nm": NM_NEW, "objdump": OBJDUMP_NEW, "strings": "hello\nnew only\n"},
    }

    def respond(cmd: str, *args: str) -> ProcessResult:
        path = args[-1]
        if cmd == "file":
            return ProcessResult(0, "ELF 64-bit LSB pie executable, x86-64, not stripped\n")
        if path in per_file and cmd in per_file[path]:
            return ProcessResult(0, per_file[path][cmd])
        return ProcessResult(1, "", f"{cmd}: unexpected call")

    return FakeRunner({"file": respond, "nm": respond, "objdump": respond, "strings": respond})

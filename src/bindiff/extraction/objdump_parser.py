"""Per-function disassembly via objdump, llvm-objdump or otool."""

from __future__ import annotations

import re
from pathlib import Path

from bindiff.errors import ExtractionError
from bindiff.extraction.artifacts import DisassembledFunction, Instruction, functions_by_name
from bindiff.extraction.runner import ProcessRunner
from bindiff.utils.logging import get_logger

log = get_logger(__name__)

# "0000000000001139 <main>:"
_OBJDUMP_FUNCTION = re.compile(r"^([0-9a-fA-F]+)\s+<([^>]+)>:")
# "    1139:	55                   	push   %rbp"
_OBJDUMP_LINE = re.compile(r"^\s*([0-9a-fA-F]+):\s+(.*)$")
# Byte column: "48 89 e5" (GNU) or "d503201f" (AArch64 words).
_BYTE_UNIT = r"(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{4}|[0-9a-fA-F]{2})"
_BYTE_COLUMN = re.compile(rf"^{_BYTE_UNIT}(?:\s+{_BYTE_UNIT})*$")

# "_main:"
_OTOOL_FUNCTION = re.compile(r"^([_a-zA-Z][_a-zA-Z0-9$.]*):$")
# "0000000100003f50	pushq	%rbp"
_OTOOL_INSN = re.compile(r"^([0-9a-fA-F]+)\s+(\S+)\s*(.*)$")


class _FunctionBuilder:
    def __init__(self) -> None:
        self.bodies: list[DisassembledFunction] = []
        self.name: str | None = None
        self.start = 0
        self.instructions: list[Instruction] = []

    def begin(self, name: str, start: int) -> None:
        self.flush()
        self.name = name
        self.start = start
        self.instructions = []

    def add(self, instruction: Instruction) -> None:
        if not self.instructions and self.start == 0:
            self.start = instruction.address
        self.instructions.append(instruction)

    def result(self) -> dict[str, DisassembledFunction]:
        self.flush()
        return functions_by_name(self.bodies)

    def flush(self) -> None:
        # Empty bodies (section headers, padding labels) are dropped.
        if self.name is not None and self.instructions:
            self.bodies.append(DisassembledFunction(self.name, self.start, tuple(self.instructions)))
        self.name = None
        self.instructions = []


def _split_objdump_body(body: str) -> tuple[str, str, str] | None:
    """Split the text after ``addr:`` into (raw bytes, mnemonic, operands).

    A tab separates the byte column from the instruction, so mnemonics that
    happen to be valid hex (``add``, ``dec``) never end up in the bytes.
    Returns None for byte-only continuation lines.
    """
    raw = ""
    insn = body
    if "\t" in body:
        head, tail = body.split("\t", 1)
        if _BYTE_COLUMN.match(head.strip()):
            raw, insn = head.strip(), tail
    elif _BYTE_COLUMN.match(body.strip()):
        return None

    parts = insn.strip().split(None, 1)
    if not parts:
        return None
    operands = parts[1].strip() if len(parts) > 1 else ""
    return raw, parts[0], operands


def parse_objdump_output(output: str) -> dict[str, DisassembledFunction]:
    """Parse GNU or LLVM ``objdump -d`` output into name -> function."""
    builder = _FunctionBuilder()
    for line in output.splitlines():
        header = _OBJDUMP_FUNCTION.match(line)
        if header:
            builder.begin(header.group(2), int(header.group(1), 16))
            continue
        if builder.name is None:
            continue

        m = _OBJDUMP_LINE.match(line)
        if not m:
            continue
        parsed = _split_objdump_body(m.group(2))
        if parsed is None:
            continue
        raw, mnemonic, operands = parsed
        builder.add(
            Instruction(
                address=int(m.group(1), 16),
                mnemonic=mnemonic,
                operands=operands,
                raw_bytes=raw,
                raw_line=line,
            )
        )
    return builder.result()


def parse_otool_output(output: str) -> dict[str, DisassembledFunction]:
    """Parse macOS ``otool -tV`` output into name -> function."""
    builder = _FunctionBuilder()
    for line in output.splitlines():
        header = _OTOOL_FUNCTION.match(line)
        if header:
            builder.begin(header.group(1), 0)
            continue
        if builder.name is None:
            continue
        m = _OTOOL_INSN.match(line)
        if m:
            addr, mnemonic, operands = m.groups()
            builder.add(
                Instruction(
                    address=int(addr, 16),
                    mnemonic=mnemonic,
                    operands=operands.strip(),
                    raw_line=line,
                )
            )
    return builder.result()


class Disassembler:
    def __init__(
        self,
        runner: ProcessRunner,
        objdump: str = "objdump",
        llvm_objdump: str = "llvm-objdump",
        otool: str = "otool",
    ) -> None:
        self.runner = runner
        self.objdump = objdump
        self.llvm_objdump = llvm_objdump
        self.otool = otool

    def disassemble(self, path: Path) -> dict[str, DisassembledFunction]:
        """Try objdump, then llvm-objdump, then otool; raise if all fail."""
        failures: list[str] = []
        attempts = (
            (self.objdump, ("-d",), parse_objdump_output),
            (self.llvm_objdump, ("-d",), parse_objdump_output),
            (self.otool, ("-tV",), parse_otool_output),
        )
        for tool, args, parser in attempts:
            result = self.runner.run(tool, *args, str(path))
            if result.ok:
                functions = parser(result.stdout)
                log.info("disassembled", path=str(path), tool=tool, functions=len(functions))
                return functions
            failures.append(f"{tool}: {result.describe_failure()}")

        raise ExtractionError("Disassembly failed. " + "; ".join(failures))

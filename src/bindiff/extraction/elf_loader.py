"""Direct ELF loader using pyelftools + capstone, no binutils required."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

from capstone import (
    CS_ARCH_ARM,
    CS_ARCH_ARM64,
    CS_ARCH_X86,
    CS_MODE_32,
    CS_MODE_64,
    CS_MODE_ARM,
    CS_MODE_BIG_ENDIAN,
    CS_MODE_THUMB,
    Cs,
    CsError,
)
from elftools.common.exceptions import ELFError
from elftools.elf.constants import SH_FLAGS
from elftools.elf.elffile import ELFFile
from elftools.elf.sections import SymbolTableSection

from bindiff.config.defaults import DEFAULT_STRING_MIN_LENGTH
from bindiff.errors import ExtractionError
from bindiff.extraction.artifacts import (
    CALL_MNEMONICS,
    CONTROL_FLOW_MNEMONICS,
    DisassembledFunction,
    ExtractedArtifact,
    ExtractedStrings,
    Instruction,
    Symbol,
    SymbolBinding,
    SymbolKind,
    functions_by_name,
)
from bindiff.utils.logging import get_logger

log = get_logger(__name__)

# Same wording `file -b` uses, so `validation.extract_arch` reads both.
_MACHINE_NAMES = {
    "EM_X86_64": "x86-64",
    "EM_386": "Intel 80386",
    "EM_AARCH64": "ARM aarch64",
    "EM_ARM": "ARM",
    "EM_MIPS": "MIPS",
    "EM_PPC": "PowerPC",
    "EM_PPC64": "64-bit PowerPC",
}

_FILE_TYPES = {
    "ET_EXEC": "executable",
    "ET_DYN": "shared object",
    "ET_REL": "relocatable",
    "ET_CORE": "core file",
}

_BINDINGS = {
    "STB_GLOBAL": SymbolBinding.GLOBAL,
    "STB_LOCAL": SymbolBinding.LOCAL,
    "STB_WEAK": SymbolBinding.WEAK,
}

_DIRECT_TARGET = re.compile(r"^#?0x([0-9a-fA-F]+)$")


def describe_elf(elf: ELFFile) -> str:
    """A `file -b` style one-liner, e.g. ``ELF 64-bit LSB executable, x86-64, not stripped``."""
    endian = "LSB" if elf.little_endian else "MSB"
    ftype = _FILE_TYPES.get(elf.header.e_type, str(elf.header.e_type))
    machine = _MACHINE_NAMES.get(elf.header.e_machine, str(elf.header.e_machine))
    stripped = "not stripped" if elf.get_section_by_name(".symtab") else "stripped"
    return f"ELF {elf.elfclass}-bit {endian} {ftype}, {machine}, {stripped}"


def _architecture(elf: ELFFile) -> str:
    machine = elf.header.e_machine
    mapping = {
        "EM_X86_64": "x86_64",
        "EM_386": "x86",
        "EM_ARM": "arm",
        "EM_AARCH64": "aarch64",
    }
    return mapping.get(machine, str(machine))


def _capstone_for(elf: ELFFile, thumb: bool = False) -> Cs:
    machine = elf.header.e_machine
    endian = 0 if elf.little_endian else CS_MODE_BIG_ENDIAN
    if machine == "EM_X86_64":
        return Cs(CS_ARCH_X86, CS_MODE_64)
    if machine == "EM_386":
        return Cs(CS_ARCH_X86, CS_MODE_32)
    if machine == "EM_AARCH64":
        return Cs(CS_ARCH_ARM64, CS_MODE_ARM | endian)
    if machine == "EM_ARM":
        return Cs(CS_ARCH_ARM, (CS_MODE_THUMB if thumb else CS_MODE_ARM) | endian)
    raise ExtractionError(f"Unsupported ELF machine for disassembly: {machine}")


def _symbol_kind(sym, section_name: str | None) -> SymbolKind:
    shndx = sym.entry.st_shndx
    stype = sym.entry.st_info.type
    if shndx == "SHN_UNDEF":
        return SymbolKind.UNDEFINED
    if shndx == "SHN_ABS":
        return SymbolKind.ABSOLUTE
    if shndx == "SHN_COMMON" or stype == "STT_COMMON":
        return SymbolKind.COMMON
    if stype in ("STT_FUNC", "STT_GNU_IFUNC"):
        return SymbolKind.FUNCTION
    if stype in ("STT_OBJECT", "STT_TLS"):
        if section_name and section_name.startswith((".bss", ".tbss")):
            return SymbolKind.BSS
        if section_name and section_name.startswith(".rodata"):
            return SymbolKind.READ_ONLY
        return SymbolKind.DATA
    return SymbolKind.OTHER


def _section_name(elf: ELFFile, shndx) -> str | None:
    if not isinstance(shndx, int):
        return None
    try:
        return elf.get_section(shndx).name
    except (ELFError, IndexError):
        return None


def get_symbols(elf: ELFFile) -> list[Symbol]:
    """Symbols from .dynsym then .symtab; a .symtab entry replaces a .dynsym one."""
    tables = [s for s in elf.iter_sections() if isinstance(s, SymbolTableSection)]
    tables.sort(key=lambda s: s.name == ".symtab")

    symbols: dict[str, Symbol] = {}
    for table in tables:
        for sym in table.iter_symbols():
            if not sym.name or sym.entry.st_info.type in ("STT_SECTION", "STT_FILE"):
                continue
            section = _section_name(elf, sym.entry.st_shndx)
            defined = sym.entry.st_shndx != "SHN_UNDEF"
            symbols[sym.name] = Symbol(
                name=sym.name,
                kind=_symbol_kind(sym, section),
                binding=_BINDINGS.get(sym.entry.st_info.bind, SymbolBinding.UNKNOWN),
                address=sym.entry.st_value if defined else None,
                size=sym.entry.st_size if defined else None,
                section=section,
            )
    return list(symbols.values())


def get_strings(elf: ELFFile, min_length: int = DEFAULT_STRING_MIN_LENGTH) -> ExtractedStrings:
    """Printable ASCII runs from .rodata* and .data sections."""
    found: list[str] = []
    for section in elf.iter_sections():
        if not (section.name.startswith(".rodata") or section.name == ".data"):
            continue
        if section["sh_type"] == "SHT_NOBITS":
            continue
        current = bytearray()
        for byte in section.data():
            if 0x20 <= byte <= 0x7E or byte == 0x09:
                current.append(byte)
                continue
            if len(current) >= min_length:
                found.append(current.decode("ascii").strip())
            current = bytearray()
        if len(current) >= min_length:
            found.append(current.decode("ascii").strip())
    return ExtractedStrings(tuple(s for s in found if s))


def _annotate_target(mnemonic: str, op_str: str, addr_to_name: dict[int, str]) -> str:
    """Render direct branch targets the way objdump does: ``1139 <helper>``."""
    if mnemonic not in CONTROL_FLOW_MNEMONICS and mnemonic not in CALL_MNEMONICS:
        return op_str
    m = _DIRECT_TARGET.match(op_str.strip())
    if not m:
        return op_str
    target = int(m.group(1), 16)
    name = addr_to_name.get(target)
    if name is None:
        return op_str
    return f"{target:x} <{name}>"


def get_functions(elf: ELFFile, symbols: list[Symbol]) -> dict[str, DisassembledFunction]:
    """Disassemble every sized, defined function symbol in an executable section."""
    addr_to_name = {s.address: s.name for s in symbols if s.address and s.is_function}
    is_arm = elf.header.e_machine == "EM_ARM"
    bodies: list[DisassembledFunction] = []

    for sym in sorted(symbols, key=lambda s: s.address or 0):
        if not sym.is_function or not sym.size or sym.address is None or sym.section is None:
            continue
        section = elf.get_section_by_name(sym.section)
        if section is None or section["sh_type"] == "SHT_NOBITS":
            continue
        if not section["sh_flags"] & SH_FLAGS.SHF_EXECINSTR:
            continue

        # ARM marks Thumb entry points with the low address bit.
        thumb = is_arm and bool(sym.address & 1)
        start = sym.address & ~1 if thumb else sym.address
        offset = start - section["sh_addr"]
        if offset < 0 or offset + sym.size > section["sh_size"]:
            continue
        code = section.data()[offset : offset + sym.size]

        md = _capstone_for(elf, thumb=thumb)
        instructions = tuple(
            Instruction(
                address=insn.address,
                mnemonic=insn.mnemonic,
                operands=_annotate_target(insn.mnemonic, insn.op_str, addr_to_name),
                raw_bytes=bytes(insn.bytes).hex(" "),
            )
            for insn in md.disasm(code, start)
        )
        if instructions:
            bodies.append(DisassembledFunction(sym.name, start, instructions))

    return functions_by_name(bodies)


def load_elf_artifact(path: Path, min_string_length: int = DEFAULT_STRING_MIN_LENGTH) -> ExtractedArtifact:
    """Load a raw ELF file into an `ExtractedArtifact`.

    Raises `ExtractionError` when the file is not ELF, is truncated, or targets
    a machine capstone is not configured for here.
    """
    path = Path(path)
    try:
        file_bytes = path.read_bytes()
    except OSError as exc:
        raise ExtractionError(f"Cannot read {path}: {exc}") from exc
    sha256 = hashlib.sha256(file_bytes).hexdigest()

    try:
        with open(path, "rb") as f:
            elf = ELFFile(f)
            file_info = describe_elf(elf)
            arch = _architecture(elf)
            symbols = get_symbols(elf)
            strings = get_strings(elf, min_string_length)
            functions = get_functions(elf, symbols)
    except (ELFError, CsError) as exc:
        raise ExtractionError(f"ELF load failed for {path}: {exc}") from exc

    log.info(
        "elf_loaded",
        path=str(path),
        arch=arch,
        symbols=len(symbols),
        functions=len(functions),
        strings=strings.count,
    )

    return ExtractedArtifact(
        path=path,
        sha256=sha256,
        size=len(file_bytes),
        file_info=file_info,
        architecture=arch,
        symbols=tuple(symbols),
        functions=functions,
        strings=strings,
    )


def describe_elf_file(path: Path) -> str:
    try:
        with open(path, "rb") as f:
            return describe_elf(ELFFile(f))
    except (ELFError, OSError) as exc:
        raise ExtractionError(f"Not a readable ELF file: {path}: {exc}") from exc

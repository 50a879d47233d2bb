"""Default configuration values and paths."""

from __future__ import annotations

from pathlib import Path

CONFIG_FILE_NAMES = [
    "bindiff.yaml",
    "bindiff.yml",
    ".bindiff.yaml",
    ".bindiff.yml",
]

CONFIG_SEARCH_PATHS = [
    Path.cwd(),
    Path.home() / ".config" / "bindiff",
    Path.home(),
]

DEFAULT_CONTEXT_LINES = 3
DEFAULT_MAX_INSTRUCTIONS = 20_000
DEFAULT_STRING_MIN_LENGTH = 4
DEFAULT_TOOL_TIMEOUT = 300

# Mnemonics whose <symbol> annotation is the linker's "nearest known symbol"
# rather than an operand.
ADDRESS_LOADING_MNEMONICS = [
    "adrp", "adr",
    "ldr", "ldur", "ldp",
    "str", "stur", "stp",
    "lea",
]

CALL_MNEMONICS = ["bl", "call", "callq"]

MANGLING_PREFIXES = ["_Z", "__Z"]

# Dynamic-linker trampolines that show up as the nearest symbol of a PLT stub.
PLT_STUB_SYMBOLS = [
    "dyld_stub_binder",
    "_dyld_stub_binder",
    "__stub_helper",
    "_dl_runtime_resolve",
    "_dl_runtime_resolve_xsave",
    "_dl_runtime_resolve_xsavec",
]

SEVERITY_MAX_ADDED_FUNCTIONS = 5
SEVERITY_MAX_MODIFIED_FUNCTIONS = 10

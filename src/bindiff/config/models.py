"""Pydantic configuration models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from bindiff.config import defaults


class ToolsConfig(BaseModel):
    nm: str = "nm"
    objdump: str = "objdump"
    llvm_objdump: str = "llvm-objdump"
    otool: str = "otool"
    strings: str = "strings"
    file: str = "file"
    cxxfilt: str = "c++filt"
    timeout: int = defaults.DEFAULT_TOOL_TIMEOUT


class ExtractionConfig(BaseModel):
    backend: Literal["tools", "elf"] = "tools"
    string_min_length: int = Field(default=defaults.DEFAULT_STRING_MIN_LENGTH, ge=1)
    strings_required: bool = True


class NormalizationConfig(BaseModel):
    address_loading_mnemonics: list[str] = Field(
        default_factory=lambda: list(defaults.ADDRESS_LOADING_MNEMONICS)
    )
    call_mnemonics: list[str] = Field(default_factory=lambda: list(defaults.CALL_MNEMONICS))
    mangling_prefixes: list[str] = Field(
        default_factory=lambda: list(defaults.MANGLING_PREFIXES)
    )
    plt_stub_symbols: list[str] = Field(
        default_factory=lambda: list(defaults.PLT_STUB_SYMBOLS)
    )


class DiffConfig(BaseModel):
    context_lines: int = Field(default=defaults.DEFAULT_CONTEXT_LINES, ge=0)
    max_instructions: int | None = defaults.DEFAULT_MAX_INSTRUCTIONS
    keep_linker_symbols: bool = False


class SeverityConfig(BaseModel):
    max_added_functions: int = defaults.SEVERITY_MAX_ADDED_FUNCTIONS
    max_modified_functions: int = defaults.SEVERITY_MAX_MODIFIED_FUNCTIONS


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    json_output: bool = False


class BinDiffConfig(BaseModel):
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    severity: SeverityConfig = Field(default_factory=SeverityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

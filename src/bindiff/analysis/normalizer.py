"""Canonicalize disassembled instructions for comparison.

Two builds of the same source rarely agree on addresses, and the
``<symbol>`` annotations printed by objdump are only the *nearest* known
symbol to an address. Both change when a linker lays a binary out
differently. The normalizer rewrites an instruction's operands so that such
layout noise compares equal while opcodes, register shapes and real call
targets are kept.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

from bindiff.config.models import NormalizationConfig
from bindiff.extraction.artifacts import Instruction

_HEX_LITERAL = re.compile(r"0x[0-9a-fA-F]+")
# GNU objdump prints branch targets as bare hex followed by the annotation.
_BARE_TARGET = re.compile(r"(?<![\w<#])[0-9a-fA-F]+(?=\s+<)")
_SYMBOL_ADDR_OFFSET = re.compile(r"\+<addr>>")
_SYMBOL_NUM_OFFSET = re.compile(r"\+[0-9]+>")
_BRACKET_DISPLACEMENT = re.compile(r"\[([^,\]]+),\s*#-?[0-9]+\]")
_STANDALONE_IMMEDIATE = re.compile(r"(^|\s)#-?[0-9]+($|\s|;)")
# Annotations other than the placeholders this module introduces itself.
_SYMBOL_ANNOTATION = re.compile(r"<(?!addr>|off>|imm>)([^>]+)>")
_WHITESPACE = re.compile(r"\s+")

ADDR_PLACEHOLDER = "<addr>"


@dataclass(frozen=True)
class TargetPolicy:
    """Decides whether a call annotation names a real target or linker noise.

    Mangled names and double-underscore internals are stable across linkers;
    plain C names reached through a PLT stub are not, and neither are the
    dynamic-linker trampolines listed in `stub_symbols`.
    """

    mangling_prefixes: tuple[str, ...] = ("_Z", "__Z")
    stub_symbols: frozenset[str] = frozenset()

    @classmethod
    def from_config(cls, config: NormalizationConfig) -> TargetPolicy:
        return cls(
            mangling_prefixes=tuple(config.mangling_prefixes),
            stub_symbols=frozenset(config.plt_stub_symbols),
        )

    def is_stub(self, symbol: str) -> bool:
        # Mach-O prepends an underscore to every C symbol.
        candidates = {symbol, "_" + symbol}
        if symbol.startswith("_"):
            candidates.add(symbol[1:])
        return not self.stub_symbols.isdisjoint(candidates)

    def is_likely_real_target(self, symbol: str) -> bool:
        if self.is_stub(symbol):
            return False
        if symbol.startswith(self.mangling_prefixes):
            return True
        if "+" in symbol:
            return True
        return symbol.startswith("__")

    __call__ = is_likely_real_target


class InstructionNormalizer:
    """Stateless instruction canonicalizer driven by `NormalizationConfig`.

    `is_real_target` overrides the call-target policy; by default a
    `TargetPolicy` built from the same configuration is used.
    """

    def __init__(
        self,
        config: NormalizationConfig | None = None,
        is_real_target: Callable[[str], bool] | None = None,
    ) -> None:
        self.config = config or NormalizationConfig()
        self.is_real_target = is_real_target or TargetPolicy.from_config(self.config)
        self._address_loading = tuple(m.lower() for m in self.config.address_loading_mnemonics)
        self._calls = frozenset(m.lower() for m in self.config.call_mnemonics)

    def is_address_loading(self, mnemonic: str) -> bool:
        return mnemonic.lower().startswith(self._address_loading)

    def is_call(self, mnemonic: str) -> bool:
        return mnemonic.lower() in self._calls

    def normalize_operands(
        self, mnemonic: str, operands: str, keep_linker_symbols: bool = False
    ) -> str:
        ops = _HEX_LITERAL.sub(ADDR_PLACEHOLDER, operands)
        ops = _BARE_TARGET.sub(ADDR_PLACEHOLDER, ops)
        ops = _SYMBOL_ADDR_OFFSET.sub(">", ops)
        ops = _SYMBOL_NUM_OFFSET.sub(">", ops)
        ops = _BRACKET_DISPLACEMENT.sub(r"[\1, #<off>]", ops)
        ops = _STANDALONE_IMMEDIATE.sub(r"\1#<imm>\2", ops)

        if not keep_linker_symbols:
            if self.is_address_loading(mnemonic):
                ops = _SYMBOL_ANNOTATION.sub("", ops)
            elif self.is_call(mnemonic):
                match = _SYMBOL_ANNOTATION.search(ops)
                if match and not self.is_real_target(match.group(1)):
                    ops = _SYMBOL_ANNOTATION.sub("", ops)

        return _WHITESPACE.sub(" ", ops).strip()

    def normalize(self, instruction: Instruction, keep_linker_symbols: bool = False) -> str:
        """Return the comparison key for one instruction."""
        ops = self.normalize_operands(
            instruction.mnemonic, instruction.operands, keep_linker_symbols
        )
        return f"{instruction.mnemonic} {ops}".strip()

    def normalize_all(
        self, instructions: tuple[Instruction, ...] | list[Instruction], keep_linker_symbols: bool = False
    ) -> list[str]:
        return [self.normalize(i, keep_linker_symbols) for i in instructions]


@lru_cache(maxsize=1)
def default_normalizer() -> InstructionNormalizer:
    return InstructionNormalizer()


def normalize(instruction: Instruction, keep_linker_symbols: bool = False) -> str:
    """Normalize with the built-in mnemonic tables."""
    return default_normalizer().normalize(instruction, keep_linker_symbols)

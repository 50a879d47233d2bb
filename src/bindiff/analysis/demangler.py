"""C++ name demangling through c++filt, memoized in a caller-owned cache."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from bindiff.utils.logging import get_logger

if TYPE_CHECKING:
    from bindiff.extraction.runner import ProcessRunner

log = get_logger(__name__)

_MISSING = object()


def is_mangled_cpp(name: str) -> bool:
    # Itanium ABI; Mach-O adds one more leading underscore.
    return name.startswith("_Z") or name.startswith("__Z")


class DemangleCache:
    """Mangled name -> demangled name (or ``None`` when it cannot be demangled).

    Entries are pure functions of the key, so one cache may be shared between
    runs and read concurrently.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str | None] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str, default: object = _MISSING) -> str | None:
        if default is _MISSING:
            return self._entries[name]
        return self._entries.get(name, default)  # type: ignore[arg-type]

    def put(self, name: str, demangled: str | None) -> None:
        self._entries[name] = demangled

    def clear(self) -> None:
        self._entries.clear()


class Demangler:
    def __init__(
        self,
        runner: ProcessRunner,
        cache: DemangleCache | None = None,
        tool: str = "c++filt",
    ) -> None:
        self.runner = runner
        self.cache = cache if cache is not None else DemangleCache()
        self.tool = tool
        self._available: bool | None = None

    def is_available(self) -> bool:
        if self._available is None:
            # `c++filt --version` exits 0 whenever the tool is installed.
            self._available = self.runner.run(self.tool, "--version").ok
            if not self._available:
                log.info("demangler_unavailable", tool=self.tool)
        return self._available

    def _try(self, name: str) -> str | None:
        result = self.runner.run(self.tool, name)
        if not result.ok:
            return None
        demangled = result.stdout.strip()
        if not demangled or demangled == name or is_mangled_cpp(demangled):
            return None
        return demangled

    def _demangle_uncached(self, name: str) -> str | None:
        if not self.is_available():
            return None
        demangled = self._try(name)
        if demangled is None:
            # c++filt on Linux rejects the Mach-O spelling and vice versa.
            if name.startswith("__Z"):
                demangled = self._try(name[1:])
            elif name.startswith("_Z"):
                demangled = self._try("_" + name)
        return demangled

    def demangle(self, name: str) -> str | None:
        if not is_mangled_cpp(name):
            return None
        if name not in self.cache:
            self.cache.put(name, self._demangle_uncached(name))
        return self.cache.get(name)

    def demangle_batch(self, names: Iterable[str]) -> dict[str, str]:
        result: dict[str, str] = {}
        for name in dict.fromkeys(names):
            demangled = self.demangle(name)
            if demangled is not None:
                result[name] = demangled
        return result

    def format_symbol(self, name: str) -> str:
        demangled = self.demangle(name)
        return f"{name} ({demangled})" if demangled else name

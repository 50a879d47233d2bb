"""bindiff: structural comparison of compiled artifacts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bindiff.version import __version__

if TYPE_CHECKING:
    from bindiff.analysis.demangler import DemangleCache, Demangler
    from bindiff.config.models import BinDiffConfig
    from bindiff.extraction.runner import ProcessRunner


@dataclass
class BinDiffContext:
    """Dependency-injection container shared across CLI commands."""

    config: BinDiffConfig | None = None
    runner: ProcessRunner | None = None
    demangle_cache: DemangleCache | None = None
    verbose: bool = False
    _demanglers: dict[str, Demangler] = field(default_factory=dict)

    def ensure_config(self) -> BinDiffConfig:
        if self.config is None:
            from bindiff.config.loader import load_config

            self.config = load_config()
        return self.config

    def ensure_runner(self) -> ProcessRunner:
        if self.runner is None:
            from bindiff.extraction.runner import (
                CachingProcessRunner,
                LoggingProcessRunner,
                SubprocessRunner,
            )

            cfg = self.ensure_config()
            self.runner = CachingProcessRunner(
                LoggingProcessRunner(SubprocessRunner(timeout=cfg.tools.timeout))
            )
        return self.runner

    def ensure_demangler(self) -> Demangler:
        from bindiff.analysis.demangler import DemangleCache, Demangler

        cfg = self.ensure_config()
        tool = cfg.tools.cxxfilt
        if tool not in self._demanglers:
            if self.demangle_cache is None:
                self.demangle_cache = DemangleCache()
            self._demanglers[tool] = Demangler(
                self.ensure_runner(), cache=self.demangle_cache, tool=tool
            )
        return self._demanglers[tool]


__all__ = ["BinDiffContext", "__version__"]

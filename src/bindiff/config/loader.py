"""YAML configuration loader with env var interpolation and CLI overrides."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from bindiff.config.defaults import CONFIG_FILE_NAMES, CONFIG_SEARCH_PATHS
from bindiff.config.models import BinDiffConfig

_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)(?::([^}]*))?\}")


def _interpolate_env(value: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: object) -> object:
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(item) for item in obj]
    return obj


def _set_dotted(target: dict[str, Any], dotted_key: str, value: Any) -> None:
    *parents, leaf = dotted_key.split(".")
    node = target
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[leaf] = value


def find_config_file(explicit_path: str | Path | None = None) -> Path | None:
    """Locate a bindiff config file, returning the first found or None."""
    if explicit_path is not None:
        p = Path(explicit_path)
        return p if p.is_file() else None

    for search_dir in CONFIG_SEARCH_PATHS:
        for name in CONFIG_FILE_NAMES:
            candidate = search_dir / name
            if candidate.is_file():
                return candidate
    return None


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> BinDiffConfig:
    """Load and validate configuration, falling back to defaults.

    `overrides` maps dotted keys (``"diff.context_lines"``) to values and is
    applied on top of the file contents before validation. ``None`` values are
    skipped so unset CLI options leave the file's setting alone.
    """
    config_path = find_config_file(path)
    raw: dict[str, Any] = {}
    if config_path is not None:
        loaded = yaml.safe_load(config_path.read_text()) or {}
        raw = _walk_and_interpolate(loaded)  # type: ignore[assignment]

    for key, value in (overrides or {}).items():
        if value is not None:
            _set_dotted(raw, key, value)

    return BinDiffConfig.model_validate(raw)


def apply_overrides(config: BinDiffConfig, overrides: dict[str, Any]) -> BinDiffConfig:
    """Return a copy of `config` with dotted-key overrides applied."""
    raw = config.model_dump()
    for key, value in overrides.items():
        if value is not None:
            _set_dotted(raw, key, value)
    return BinDiffConfig.model_validate(raw)

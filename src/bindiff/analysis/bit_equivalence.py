"""Whole-artifact byte identity via SHA-256."""

from __future__ import annotations

import hashlib
from pathlib import Path

from bindiff.analysis.results import BitEquivalenceResult

_CHUNK_SIZE = 1 << 20


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hash_file(path: str | Path) -> tuple[str, int]:
    """Stream a file through SHA-256, returning ``(hexdigest, size)``."""
    digest = hashlib.sha256()
    size = 0
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
            size += len(chunk)
    return digest.hexdigest(), size


def from_digests(old_hash: str, old_size: int, new_hash: str, new_size: int) -> BitEquivalenceResult:
    """Build a result from precomputed digests.

    Identity is decided by the hashes alone; sizes are carried for reporting.
    """
    return BitEquivalenceResult(
        identical=old_hash == new_hash,
        old_hash=old_hash,
        new_hash=new_hash,
        old_size=old_size,
        new_size=new_size,
    )


def check_bit_equivalence(old_bytes: bytes, new_bytes: bytes) -> BitEquivalenceResult:
    # Both sides are hashed even when sizes differ so the report can show them.
    return from_digests(hash_bytes(old_bytes), len(old_bytes), hash_bytes(new_bytes), len(new_bytes))


def check_files(old_path: str | Path, new_path: str | Path) -> BitEquivalenceResult:
    old_hash, old_size = hash_file(old_path)
    new_hash, new_size = hash_file(new_path)
    return from_digests(old_hash, old_size, new_hash, new_size)

"""Fast hashing for cache keys.

xxhash for non-cryptographic keys, SHA256 where a stable, portable digest
is needed.
"""

from enum import Enum
from typing import Any
import hashlib

import xxhash

from .json import safe_json_dumps


class Algorithm(str, Enum):
    """Supported hash algorithms."""

    XXHASH64 = "xxhash64"  # cache keys
    SHA256 = "sha256"


def hash_string(
    text: str,
    algorithm: Algorithm = Algorithm.XXHASH64,
    truncate: int | None = None,
) -> str:
    """
    Hash string to hex digest.

    Args:
        text: Input string
        algorithm: Hash algorithm
        truncate: Keep only the first N hex characters

    Returns:
        Hex digest
    """
    data = text.encode("utf-8")
    if algorithm == Algorithm.XXHASH64:
        digest = xxhash.xxh64(data).hexdigest()
    elif algorithm == Algorithm.SHA256:
        digest = hashlib.sha256(data).hexdigest()
    else:
        raise ValueError(f"Unknown algorithm: {algorithm}")
    return digest[:truncate] if truncate else digest


def hash_fields(*fields: Any, algorithm: Algorithm = Algorithm.XXHASH64) -> str:
    """Hash several values into one key (order-sensitive)."""
    return hash_string("|".join(safe_json_dumps(f) for f in fields), algorithm)


__all__ = ["Algorithm", "hash_string", "hash_fields"]

"""Cache keys: self-describing, versioned hashes identifying units of work."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CacheKey:
    """A self-describing, versioned hash for a query.

    Each key records its scheme (how it was generated) and its components
    (what went into it). Equality and hashing only look at scheme and
    digest, so keys are usable as dict keys across query types.
    """

    scheme: str  # e.g. "sdkgen:download:v1"
    digest: str  # SHA256 hex (full)
    components: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def short(self) -> str:
        return f"{self.scheme}:{self.digest[:12]}"


def compute_digest(scheme: str, components: dict[str, str]) -> str:
    """Deterministic digest from the scheme and sorted component hashes."""
    parts = "|".join(f"{k}={v}" for k, v in sorted(components.items()))
    return hashlib.sha256(f"{scheme}|{parts}".encode()).hexdigest()


def hash_value(obj) -> str:
    """Deterministic SHA256 prefix for any common Python value.

    Python's built-in hash() is NOT suitable here: it is randomized per
    process for strings and identity-based for most objects. This
    serializes to a canonical string form, then SHA256s it.
    """
    if obj is None:
        raw = ""
    elif isinstance(obj, str):
        raw = obj
    elif isinstance(obj, dict):
        raw = json.dumps(obj, sort_keys=True, default=str)
    elif isinstance(obj, (list, tuple)):
        raw = json.dumps([str(x) for x in obj])
    else:
        raw = str(obj)
    return hashlib.sha256(raw.encode()).hexdigest()[:16]


def cache_key_for(scheme: str, **components) -> CacheKey:
    """Build a CacheKey from named components."""
    hashed = {name: hash_value(value) for name, value in components.items()}
    return CacheKey(scheme=scheme, digest=compute_digest(scheme, hashed), components=hashed)

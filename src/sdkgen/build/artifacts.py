"""Durable query result cache (filesystem-backed)."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from sdkgen.build.cache_key import CacheKey
from sdkgen.core.errors import atomic_write


class ResultCache:
    """Filesystem-backed result storage with manifest tracking.

    The manifest maps a cache key digest to the serialized result of the
    query that produced it, so results survive across runs.
    """

    def __init__(self, cache_dir: str | Path):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._manifest_path = self.cache_dir / "cache.json"
        self._manifest: dict[str, dict] = self._load_manifest()

    def _load_manifest(self) -> dict[str, dict]:
        if self._manifest_path.exists():
            return json.loads(self._manifest_path.read_text())
        return {}

    def _save_manifest(self) -> None:
        atomic_write(self._manifest_path, json.dumps(self._manifest, indent=2, sort_keys=True))

    def get(self, key: CacheKey) -> Any | None:
        """Serialized result stored under ``key``, or None."""
        entry = self._manifest.get(key.digest)
        if entry is None or entry.get("scheme") != key.scheme:
            return None
        return entry["value"]

    def put(self, key: CacheKey, value: Any) -> None:
        """Store a serialized result under ``key``."""
        self._manifest[key.digest] = {
            "scheme": key.scheme,
            "components": dict(key.components),
            "value": value,
            "created_at": datetime.now().isoformat(),
        }
        self._save_manifest()

    def invalidate(self, key: CacheKey) -> bool:
        """Forget ``key``. Returns True if an entry was removed."""
        if self._manifest.pop(key.digest, None) is None:
            return False
        self._save_manifest()
        return True

    def __len__(self) -> int:
        return len(self._manifest)

"""
On-disk cache for analysis responses.

Entries live under ``<project>/.claude/cache/`` as small JSON files:

    {"timestamp": 1706443200.5, "response": "..."}

Expired entries are deleted on read. Cache failures never propagate; a
broken cache only costs a repeated request.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class ResponseCache:
    """Time-limited response cache keyed by request parameters."""

    def __init__(self, cache_dir: Path, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds

    @classmethod
    def for_project(cls, project_root: Path, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> ResponseCache:
        return cls(Path(project_root) / ".claude" / "cache", ttl_seconds)

    @staticmethod
    def make_key(model: str, temperature: float | None, prompt: str) -> str:
        digest = hashlib.sha256(f"{model}:{temperature}:{prompt}".encode("utf-8"))
        return digest.hexdigest()

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        """Cached response for ``key``, or None if absent or expired."""
        path = self._path(key)
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if time.time() - float(data["timestamp"]) < self.ttl_seconds:
                return str(data["response"])
            path.unlink()
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.debug("Cache read error for %s: %s", path, e)
        return None

    def set(self, key: str, response: str) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            payload = {"timestamp": time.time(), "response": response}
            self._path(key).write_text(json.dumps(payload), encoding="utf-8")
        except OSError as e:
            logger.debug("Cache write error for %s: %s", key, e)

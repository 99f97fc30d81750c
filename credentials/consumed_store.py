from __future__ import annotations

import json
import os
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path


def _now_ms() -> int:
    return int(time.time() * 1000)


class ConsumedTokenStore(ABC):
    """Records which single-use tokens have already been redeemed.

    Keys are token hashes, never raw tokens. Markers carry the token's own
    expiry so they can be pruned once the token could no longer verify.
    """

    @abstractmethod
    async def mark(self, key: str, expires_at_ms: int) -> bool:
        """Record ``key``; return False if it is already marked.

        A marker stays in place until ``prune`` removes it, even past its
        expiry.
        """
        raise NotImplementedError

    @abstractmethod
    async def is_marked(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def prune(self, now_ms: int | None = None) -> int:
        raise NotImplementedError


class MemoryConsumedTokenStore(ConsumedTokenStore):
    def __init__(self) -> None:
        self._markers: dict[str, int] = {}

    async def mark(self, key: str, expires_at_ms: int) -> bool:
        # No await between the check and the write.
        if key in self._markers:
            return False
        self._markers[key] = expires_at_ms
        return True

    async def is_marked(self, key: str) -> bool:
        return key in self._markers

    async def prune(self, now_ms: int | None = None) -> int:
        cutoff = _now_ms() if now_ms is None else now_ms
        expired = [key for key, expires_at in self._markers.items() if expires_at < cutoff]
        for key in expired:
            del self._markers[key]
        return len(expired)


class FileConsumedTokenStore(ConsumedTokenStore):
    """JSON file backed store for single-process deployments."""

    def __init__(self, path: str | Path = ".consumed-tokens.json") -> None:
        self._path = Path(path)

    async def mark(self, key: str, expires_at_ms: int) -> bool:
        markers = self._read_all()
        if key in markers:
            return False
        markers[key] = expires_at_ms
        self._write_all(markers)
        return True

    async def is_marked(self, key: str) -> bool:
        return key in self._read_all()

    async def prune(self, now_ms: int | None = None) -> int:
        cutoff = _now_ms() if now_ms is None else now_ms
        markers = self._read_all()
        kept = {key: expires_at for key, expires_at in markers.items() if expires_at >= cutoff}
        removed = len(markers) - len(kept)
        if removed:
            self._write_all(kept)
        return removed

    def _read_all(self) -> dict[str, int]:
        if not self._path.exists():
            return {}

        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise RuntimeError(
                "Consumed token store file is invalid; expected top-level JSON object."
            )
        return raw

    def _write_all(self, payload: dict[str, int]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

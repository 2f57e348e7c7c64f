"""Local persisted state: a small JSON-file key-value store.

Holds the three values the app keeps between runs:

    health_access_granted — whether the health store granted read access
    last_sync_at          — ISO-8601 time of the last successful sync
    auth_token            — bearer token from the last successful login

With ``path=None`` the store lives only in memory (tests, embedding).
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger("healthsync.state")

AUTHORIZED_KEY = "health_access_granted"
LAST_SYNC_KEY = "last_sync_at"
TOKEN_KEY = "auth_token"


class StateStore:
    """Named values with get/set/clear, written through to a JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._data: dict[str, Any] = self._read(path) if path else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._write()

    def clear(self, key: str) -> None:
        """Remove ``key``.  Clearing a missing key is a no-op."""
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._write()

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    @property
    def health_access_granted(self) -> bool:
        return bool(self.get(AUTHORIZED_KEY, False))

    @health_access_granted.setter
    def health_access_granted(self, granted: bool) -> None:
        self.set(AUTHORIZED_KEY, bool(granted))

    @property
    def last_sync_at(self) -> datetime | None:
        raw = self.get(LAST_SYNC_KEY)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning("Ignoring unparseable %s value: %r", LAST_SYNC_KEY, raw)
            return None

    def mark_synced(self, at: datetime) -> None:
        self.set(LAST_SYNC_KEY, at.isoformat())

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("State file %s unreadable, starting empty: %s", path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self._path)

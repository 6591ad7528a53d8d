"""
Keyed JSON store for the persisted client state.

One JSON object on disk; each top-level key is written through
independently by AppState whenever the corresponding state changes.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


class KeyedStore:
    """Read/write top-level keys of a JSON file"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> Dict[str, Any]:
        with self._lock:
            return self._read()

    def get(self, key: str, default=None):
        return self.load().get(key, default)

    def save(self, key: str, value: Any):
        with self._lock:
            data = self._read()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2))
            try:
                self.path.chmod(0o600)
            except OSError as e:
                logger.warning("Could not restrict permissions on %s: %s", self.path, e)


class MemoryStore(KeyedStore):
    """Same interface, kept in memory"""

    def __init__(self, data: Dict[str, Any] = None):
        self.path = None
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = json.loads(json.dumps(data or {}))

    def _read(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self._data))

    def save(self, key: str, value: Any):
        with self._lock:
            self._data[key] = json.loads(json.dumps(value))

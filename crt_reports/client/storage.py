"""
Client-side key/value storage.

A small JSON file holding the values a browser would keep in localStorage:
the authentication flag, session identifiers, the login profile and settings.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from crt_reports.config.settings import Config

logger = logging.getLogger(__name__)


class ClientStorage:
    """JSON-file backed key/value store."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or Config.CLIENT_STORAGE_PATH)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
            return data if isinstance(data, dict) else {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable client storage {self.path}: {e}")
            return {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def snapshot(self) -> Dict[str, Any]:
        """Every stored value, read in one pass."""
        with self._lock:
            return self._read()

    def set_many(self, values: Dict[str, Any]) -> None:
        with self._lock:
            data = self._read()
            data.update(values)
            self._write(data)

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def remove(self, *keys: str) -> None:
        with self._lock:
            data = self._read()
            for key in keys:
                data.pop(key, None)
            self._write(data)

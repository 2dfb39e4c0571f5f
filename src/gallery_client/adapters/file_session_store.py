"""JSON file backed session store."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from gallery_client.services.session import SessionStore

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileSessionStore(SessionStore):
    """Keeps session entries in a small JSON document on disk."""

    path: Path

    @classmethod
    def create(cls, path: str | Path) -> "JsonFileSessionStore":
        """Create a store rooted at ``path``, expanding ``~``."""
        return cls(path=Path(path).expanduser())

    def get(self, key: str) -> str | None:
        """Return the stored value for a key."""
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Store a value and rewrite the file."""
        entries = self._read()
        entries[key] = value
        self._write(entries)

    def remove(self, key: str) -> None:
        """Remove a key and rewrite the file when it changed."""
        entries = self._read()
        if entries.pop(key, None) is not None:
            self._write(entries)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            _logger.warning("Session file %s is unreadable; starting empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, entries: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle)
            tmp_path.replace(self.path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

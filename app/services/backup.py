"""Write-only JSON backup of created reservations (one array, rewritten per insert)."""

import json
import logging
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ReservationBackup:
    """Append records to a JSON array file. No rotation and no size bound."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> list[Any]:
        if not self.path.exists():
            return []
        try:
            content = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Backup file %s unreadable; starting a new array", self.path)
            return []
        if not isinstance(content, list):
            return [content]
        return content

    def append(self, record: dict[str, Any]) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            records = self._read()
            records.append(record)
            self.path.write_text(json.dumps(records, indent=2, default=str), encoding="utf-8")

    def read_all(self) -> list[Any]:
        with self._lock:
            return self._read()

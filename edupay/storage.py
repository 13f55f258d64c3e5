from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from .constants import ACTIVITY_KEY, DATA_JSON_PATH, STORAGE_KEY
from .logger import AppEvent, ErrorLogger
from .models import AppData


class JsonStore:
    """Key-value file holding the whole application document under one key.

    The file is a JSON object mapping keys to serialized JSON strings, so each
    key is written and read as a unit. Activity events live under a second key
    next to the data document.
    """

    def __init__(
        self,
        path: Path = DATA_JSON_PATH,
        key: str = STORAGE_KEY,
        err_logger: Optional[ErrorLogger] = None,
    ):
        self.path = path
        self.key = key
        self.err_logger = err_logger or ErrorLogger()
        self._kv: Optional[dict[str, str]] = None

    def invalidate_cache(self) -> None:
        """Force the next operation to re-read the file from disk."""
        self._kv = None

    def _read_kv(self) -> dict[str, str]:
        if self._kv is not None:
            return self._kv
        if not self.path.exists():
            self._kv = {}
            return self._kv
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            self.err_logger.log_exception(e, f"read {self.path}")
            raw = {}
        if not isinstance(raw, dict):
            self.err_logger.log_message(f"expected a JSON object, got {type(raw).__name__}", f"read {self.path}")
            raw = {}
        self._kv = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        return self._kv

    def _write_kv(self, kv: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(kv, f, indent=2, ensure_ascii=False)
            f.write("\n")
        self._kv = kv

    def get_item(self, key: str) -> Optional[str]:
        return self._read_kv().get(key)

    def set_item(self, key: str, value: str) -> None:
        kv = dict(self._read_kv())
        kv[key] = value
        self._write_kv(kv)

    # ---------------- Application document ----------------
    def load(self) -> Optional[AppData]:
        """Stored document, or None when nothing usable has been saved."""
        stored = self.get_item(self.key)
        if not stored:
            return None
        try:
            doc = json.loads(stored)
        except ValueError as e:
            self.err_logger.log_exception(e, f"load {self.key}: corrupt document")
            return None
        if not isinstance(doc, dict):
            self.err_logger.log_message(f"stored {self.key} is not an object", "load")
            return None
        return AppData.from_dict(doc)

    def load_or_default(self) -> AppData:
        data = self.load()
        return data if data is not None else AppData()

    def save(self, data: AppData) -> None:
        self.set_item(self.key, json.dumps(data.to_dict(), ensure_ascii=False))

    # ---------------- Activity ----------------
    def _events(self) -> list[dict[str, Any]]:
        stored = self.get_item(ACTIVITY_KEY)
        if not stored:
            return []
        try:
            rows = json.loads(stored)
        except ValueError as e:
            self.err_logger.log_exception(e, f"load {ACTIVITY_KEY}: corrupt activity log")
            return []
        return [r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else []

    def add_event(self, event: AppEvent, keep: int = 500) -> None:
        rows = self._events()
        rows.append(event.to_dict())
        self.set_item(ACTIVITY_KEY, json.dumps(rows[-keep:], ensure_ascii=False))

    def list_events(self, limit: int = 500) -> list[AppEvent]:
        rows = self._events()
        return [AppEvent.from_dict(r) for r in rows[-limit:]]

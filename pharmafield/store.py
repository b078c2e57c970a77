"""
pharmafield.store

Persisted key-value arrays. Each key (collections, orders, missingItems) is
one JSON file under the data directory, rewritten wholesale on every save.

Files are written as a versioned envelope:

    {"version": 1, "key": "orders", "items": [...]}

Bare JSON arrays from older exports are still accepted on load.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from pharmafield.errors import SchemaVersionError, StorageError
from pharmafield.models import MissingItem, Record

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

COLLECTIONS = "collections"
ORDERS = "orders"
MISSING_ITEMS = "missingItems"


class RecordStore:
    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def load(self, key: str) -> List[Dict[str, Any]]:
        path = self.path_for(key)
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Discarding unreadable %s store at %s: %s", key, path, exc)
            return []

        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("items"), list):
            version = data.get("version", SCHEMA_VERSION)
            if not isinstance(version, int) or version > SCHEMA_VERSION:
                raise SchemaVersionError(
                    f"{path} has schema version {version!r}; this build reads up to {SCHEMA_VERSION}"
                )
            return data["items"]

        logger.warning("Discarding %s store at %s: unexpected payload type %s", key, path, type(data).__name__)
        return []

    def save(self, key: str, items: List[Dict[str, Any]]) -> None:
        path = self.path_for(key)
        payload = {"version": SCHEMA_VERSION, "key": key, "items": list(items)}
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except OSError as exc:
            raise StorageError(f"Could not write {key} to {path}: {exc}") from exc
        logger.debug("Saved %d item(s) to %s", len(payload["items"]), path)

    # --- typed helpers -------------------------------------------------

    def load_records(self, key: str) -> List[Record]:
        return [Record.from_dict(raw) for raw in self.load(key) if isinstance(raw, dict)]

    def save_records(self, key: str, records: List[Record]) -> None:
        self.save(key, [r.to_dict() for r in records])

    def load_missing_items(self) -> List[MissingItem]:
        return [MissingItem.from_dict(raw) for raw in self.load(MISSING_ITEMS) if isinstance(raw, dict)]

    def save_missing_items(self, items: List[MissingItem]) -> None:
        self.save(MISSING_ITEMS, [i.to_dict() for i in items])

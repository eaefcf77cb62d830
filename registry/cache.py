from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

from errors import SchemaDefinitionError
from models.schema import RecordSchema

logger = logging.getLogger(__name__)


class SchemaCache:
    """Schema id lookups shared by a catalog and the threads using it.

    Misses are fetched without holding the lock, so two threads missing the
    same id may both ask the registry; the first stored answer wins.
    """

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._schemas: Dict[int, RecordSchema] = {}
        self._ids: Dict[Tuple[str, str], int] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def __len__(self) -> int:
        with self._lock:
            return len(self._schemas)

    def get(self, schema_id: int) -> Optional[RecordSchema]:
        with self._lock:
            return self._schemas.get(schema_id)

    def put(self, schema_id: int, schema: RecordSchema) -> RecordSchema:
        with self._lock:
            stored = self._schemas.setdefault(schema_id, schema)
            self._persist()
            return stored

    def get_id(self, subject: str, schema: RecordSchema) -> Optional[int]:
        with self._lock:
            return self._ids.get((subject, schema.fingerprint()))

    def put_id(self, subject: str, schema: RecordSchema, schema_id: int) -> int:
        with self._lock:
            stored = self._ids.setdefault((subject, schema.fingerprint()), schema_id)
            self._schemas.setdefault(stored, schema)
            self._persist()
            return stored

    def get_or_fetch(
        self, schema_id: int, fetch: Callable[[int], RecordSchema]
    ) -> RecordSchema:
        cached = self.get(schema_id)
        if cached is not None:
            logger.debug("Schema cache hit", extra={"schema_id": schema_id})
            return cached
        logger.debug("Schema cache miss", extra={"schema_id": schema_id})
        return self.put(schema_id, fetch(schema_id))

    def id_or_fetch(
        self,
        subject: str,
        schema: RecordSchema,
        fetch: Callable[[str, RecordSchema], int],
    ) -> int:
        cached = self.get_id(subject, schema)
        if cached is not None:
            return cached
        return self.put_id(subject, schema, fetch(subject, schema))

    def clear(self) -> None:
        with self._lock:
            self._schemas.clear()
            self._ids.clear()
            self._persist()

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            "schemas": {
                str(schema_id): schema.to_avro() for schema_id, schema in self._schemas.items()
            },
            "ids": [
                {"subject": subject, "fingerprint": fingerprint, "id": schema_id}
                for (subject, fingerprint), schema_id in self._ids.items()
            ],
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
            schemas = {
                int(schema_id): RecordSchema.from_avro(definition)
                for schema_id, definition in data.get("schemas", {}).items()
            }
            ids = {
                (entry["subject"], entry["fingerprint"]): int(entry["id"])
                for entry in data.get("ids", [])
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError, SchemaDefinitionError):
            logger.warning(
                "Ignoring unreadable schema cache file",
                extra={"cache_path": str(self.persistence_path)},
            )
            return

        self._schemas.update(schemas)
        self._ids.update(ids)

"""
Local Cache Store

On-device tables of stories, drafts and user profiles, one serialized
collection per entity kind, each addressed by entity id.

Every mutating call writes the full table through to the substrate before
the in-memory copy is swapped, so a failed write leaves both the
in-memory and the persisted state as they were.
"""

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..codec import Entity, decode, encode, entity_id, kind_of
from ..errors import CodecError, LocalCorruptionError
from ..models import EntityKind
from .substrate import KeyValueSubstrate

logger = logging.getLogger(__name__)

TABLE_KEYS: Dict[EntityKind, str] = {
    EntityKind.STORY: "stories",
    EntityKind.DRAFT: "drafts",
    EntityKind.PROFILE: "user-profiles",
}

# Story ids deleted locally whose remote delete has not been confirmed
TOMBSTONE_KEY = "stories-tombstones"


class LocalCacheStore:
    """
    Typed access to the on-device tables.

    Tables are loaded lazily on first access. A table whose serialized form
    cannot be parsed raises LocalCorruptionError on every access until
    reset() discards it.
    """

    def __init__(self, substrate: KeyValueSubstrate):
        self.substrate = substrate
        self._tables: Dict[EntityKind, Dict[str, Entity]] = {}
        self._tombstones: Optional[List[str]] = None

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _read_json(self, key: str) -> Any:
        raw = self.substrate.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise LocalCorruptionError(key, f"invalid JSON ({e})") from e

    def _write_json(self, key: str, payload: Any) -> None:
        self.substrate.set(key, json.dumps(payload, ensure_ascii=False))

    def read_records(self, key: str) -> List[Any]:
        """
        Return the undecoded records stored under an arbitrary substrate key.

        Raises:
            LocalCorruptionError: payload is not a JSON list
        """
        payload = self._read_json(key)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise LocalCorruptionError(key, f"expected a list, got {type(payload).__name__}")
        return payload

    def read_table(self, key: str, kind: EntityKind) -> List[Entity]:
        """
        Decode the collection stored under an arbitrary substrate key.

        Raises:
            LocalCorruptionError: payload is not a JSON list of valid records
        """
        records = []
        for raw in self.read_records(key):
            try:
                records.append(decode(kind, raw))
            except CodecError as e:
                raise LocalCorruptionError(key, str(e)) from e
        return records

    def _load(self, kind: EntityKind) -> Dict[str, Entity]:
        table = self._tables.get(kind)
        if table is None:
            table = {entity_id(e): e for e in self.read_table(TABLE_KEYS[kind], kind)}
            self._tables[kind] = table
            logger.debug(f"Loaded {len(table)} {kind.value} record(s) from local cache")
        return table

    def _commit(self, kind: EntityKind, table: Dict[str, Entity]) -> None:
        self._write_json(TABLE_KEYS[kind], [encode(e) for e in table.values()])
        self._tables[kind] = table

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_all(self, kind: EntityKind) -> List[Entity]:
        return list(self._load(kind).values())

    def get_by_id(self, kind: EntityKind, id: str) -> Optional[Entity]:
        return self._load(kind).get(id)

    def filter(self, kind: EntityKind, predicate: Callable[[Entity], bool]) -> List[Entity]:
        return [e for e in self._load(kind).values() if predicate(e)]

    def sorted_by(
        self,
        kind: EntityKind,
        key: Callable[[Entity], Any],
        reverse: bool = False,
    ) -> List[Entity]:
        return sorted(self._load(kind).values(), key=key, reverse=reverse)

    def pending(self, kind: EntityKind) -> List[Entity]:
        """Records still waiting to reach the remote store."""
        return self.filter(kind, lambda e: getattr(e, "pending_sync", False))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def upsert(self, kind: EntityKind, record: Entity, replaces: Optional[str] = None) -> Entity:
        """
        Insert or replace a record by id.

        Args:
            replaces: id of a record this one supersedes (a locally generated
                id swapped for a server-assigned one). Removed in the same write.
        """
        if kind_of(record) is not kind:
            raise TypeError(f"Cannot store {type(record).__name__} in {kind.value} table")
        key = entity_id(record)
        table = dict(self._load(kind))
        if replaces and replaces != key:
            table.pop(replaces, None)
        table[key] = record
        self._commit(kind, table)
        return record

    def delete(self, kind: EntityKind, id: str) -> bool:
        """Remove a record. Returns False (and writes nothing) if it was absent."""
        current = self._load(kind)
        if id not in current:
            return False
        table = {k: v for k, v in current.items() if k != id}
        self._commit(kind, table)
        return True

    def replace_all(self, kind: EntityKind, records: Iterable[Entity]) -> None:
        """Replace the whole table with records (later duplicates win)."""
        table: Dict[str, Entity] = {}
        for record in records:
            table[entity_id(record)] = record
        self._commit(kind, table)

    def reset(self, kind: EntityKind) -> None:
        """Discard a table, including a corrupt one."""
        self.substrate.delete(TABLE_KEYS[kind])
        self._tables.pop(kind, None)
        logger.warning(f"Local {kind.value} table reset")

    # -------------------------------------------------------------------------
    # Tombstones
    # -------------------------------------------------------------------------

    def tombstones(self) -> List[str]:
        if self._tombstones is None:
            payload = self._read_json(TOMBSTONE_KEY)
            if payload is None:
                payload = []
            if not isinstance(payload, list) or not all(isinstance(i, str) for i in payload):
                raise LocalCorruptionError(TOMBSTONE_KEY, "expected a list of ids")
            self._tombstones = payload
        return list(self._tombstones)

    def add_tombstone(self, id: str) -> None:
        current = self.tombstones()
        if id in current:
            return
        updated = current + [id]
        self._write_json(TOMBSTONE_KEY, updated)
        self._tombstones = updated

    def clear_tombstone(self, id: str) -> None:
        current = self.tombstones()
        if id not in current:
            return
        updated = [i for i in current if i != id]
        self._write_json(TOMBSTONE_KEY, updated)
        self._tombstones = updated

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def get_meta(self, key: str, default: Any = None) -> Any:
        """Read a JSON value stored beside the tables (e.g. migration state)."""
        payload = self._read_json(key)
        return default if payload is None else payload

    def set_meta(self, key: str, value: Any) -> None:
        self._write_json(key, value)

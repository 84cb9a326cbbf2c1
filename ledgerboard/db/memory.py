import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ledgerboard.db.base import ENTITY_KINDS, StorageBackend, check_kind, normalize_record, project


class InMemoryStorage(StorageBackend):
    """Process-local backend. Records are deep-copied in and out."""

    name = "memory"

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[int, Dict[str, Any]]] = {kind: {} for kind in ENTITY_KINDS}
        self._sequences: Dict[str, int] = {kind: 0 for kind in ENTITY_KINDS}

    async def fetch_all(self, kind: str, fields: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        table = self._tables[check_kind(kind)]
        return [project(copy.deepcopy(record), fields) for record in table.values()]

    async def fetch_one(self, kind: str, record_id: int) -> Optional[Dict[str, Any]]:
        record = self._tables[check_kind(kind)].get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def create_one(self, kind: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        check_kind(kind)
        self._sequences[kind] += 1
        stored = normalize_record(copy.deepcopy(dict(record)))
        stored["id"] = self._sequences[kind]
        self._tables[kind][stored["id"]] = stored
        return copy.deepcopy(stored)

    async def update_one(self, kind: str, record_id: int, patch: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        table = self._tables[check_kind(kind)]
        if record_id not in table:
            return None
        changes = normalize_record(copy.deepcopy(dict(patch)))
        changes.pop("id", None)
        table[record_id].update(changes)
        return copy.deepcopy(table[record_id])

    async def delete_one(self, kind: str, record_id: int) -> bool:
        return self._tables[check_kind(kind)].pop(record_id, None) is not None

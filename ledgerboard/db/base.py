"""
Storage port consumed by every ledger component.

Backends hold plain JSON-compatible dicts keyed by entity kind and an integer
id they assign themselves. Everything that comes out of a backend has already
been through ``normalize_record`` so components only ever see one field shape.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional

ENTITY_KINDS = ("category", "transaction", "budget", "savings_goal")

# Alternate spellings seen in exported/legacy records -> canonical field name
FIELD_ALIASES = {
    "Id": "id",
    "Name": "name",
    "targetAmount": "target_amount",
    "currentAmount": "current_amount",
    "createdAt": "created_at",
    "CreatedOn": "created_at",
}


def check_kind(kind: str) -> str:
    if kind not in ENTITY_KINDS:
        raise ValueError(f"Unknown entity kind: {kind!r}")
    return kind


def normalize_record(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Map aliased field names onto the canonical shape. Canonical keys win."""
    normalized = {k: v for k, v in record.items() if k not in FIELD_ALIASES}
    for alias, canonical in FIELD_ALIASES.items():
        if alias in record and canonical not in normalized:
            normalized[canonical] = record[alias]
    return normalized


def project(record: Dict[str, Any], fields: Optional[Iterable[str]]) -> Dict[str, Any]:
    if not fields:
        return record
    wanted = set(fields) | {"id"}
    return {k: v for k, v in record.items() if k in wanted}


class StorageBackend(ABC):
    """Async CRUD over entity kinds. Failures raise ``BackendError``."""

    name = "abstract"

    @abstractmethod
    async def fetch_all(self, kind: str, fields: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def fetch_one(self, kind: str, record_id: int) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def create_one(self, kind: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Persist ``record`` under a new, monotonically increasing id and return it."""

    @abstractmethod
    async def update_one(self, kind: str, record_id: int, patch: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply ``patch`` and return the full updated record, or None if absent."""

    @abstractmethod
    async def delete_one(self, kind: str, record_id: int) -> bool:
        ...

    async def close(self) -> None:
        return None

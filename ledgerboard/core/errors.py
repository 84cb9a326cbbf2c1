"""
Typed failures raised by the ledger components.

Every failed command surfaces one of these to the caller; the HTTP layer maps
them onto status codes in ``ledgerboard.main``.
"""
from typing import Any, Optional

from pydantic import ValidationError as SchemaError


class LedgerError(Exception):
    """Base class for all ledger failures."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message, "field": None}


class ValidationError(LedgerError):
    """Malformed or out-of-range input. ``field`` names the offending input."""

    kind = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["field"] = self.field
        return data

    @classmethod
    def from_schema_error(cls, exc: SchemaError) -> "ValidationError":
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        return cls(f"{field}: {first.get('msg')}" if field else first.get("msg", str(exc)), field=field)


class NotFoundError(LedgerError):
    kind = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class DuplicateError(LedgerError):
    kind = "duplicate"


class BackendError(LedgerError):
    """Storage backend failure (network, I/O, provider error)."""

    kind = "backend_error"

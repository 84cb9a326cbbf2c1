from decimal import Decimal
from typing import Any, Iterable, Literal, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from ledgerboard.core.errors import ValidationError

EntryType = Literal["expense", "income"]
ENTRY_TYPES = ("expense", "income")

ModelT = TypeVar("ModelT", bound=BaseModel)


class InputModel(BaseModel):
    """Base for request payloads: trims strings and rejects NaN/inf amounts."""

    model_config = ConfigDict(str_strip_whitespace=True, allow_inf_nan=False, populate_by_name=True)


class Entity(BaseModel):
    """Base for stored records. Frozen so snapshots cannot leak mutations back."""

    model_config = ConfigDict(frozen=True, extra="ignore")


def parse_model(model_cls: Type[ModelT], data: Any) -> ModelT:
    """Validate ``data`` into ``model_cls``, raising the ledger's ValidationError."""
    if isinstance(data, model_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model_cls.model_validate(data)
    except SchemaError as exc:
        raise ValidationError.from_schema_error(exc) from exc


def money_sum(amounts: Iterable[float]) -> float:
    """Add currency amounts in decimal so the grouping of a sum never changes its total."""
    return float(sum((Decimal(str(amount)) for amount in amounts), Decimal(0)))

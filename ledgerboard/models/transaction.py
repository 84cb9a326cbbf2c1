import datetime as dt
from typing import Optional

from pydantic import AliasChoices, Field

from ledgerboard.models.base import Entity, EntryType, InputModel


class TransactionCreate(InputModel):
    amount: float = Field(gt=0)
    type: EntryType
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)
    date: dt.date


class TransactionUpdate(InputModel):
    amount: Optional[float] = Field(default=None, gt=0)
    type: Optional[EntryType] = None
    category: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    date: Optional[dt.date] = None


class Transaction(Entity):
    id: int
    amount: float
    type: EntryType
    category: str
    description: str
    date: dt.date
    created_at: dt.datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"))

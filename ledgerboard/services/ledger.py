import asyncio
import datetime as dt
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, List, Optional

from ledgerboard.core.errors import NotFoundError, ValidationError
from ledgerboard.db.base import StorageBackend
from ledgerboard.events import EventBus, TransactionCreated, TransactionDeleted, TransactionUpdated
from ledgerboard.models.base import parse_model
from ledgerboard.models.transaction import Transaction, TransactionCreate, TransactionUpdate
from ledgerboard.services.categories import CategoryRegistry

logger = logging.getLogger(__name__)

KIND = "transaction"
RECENT_LIMIT = 5


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass(frozen=True)
class TransactionFilter:
    """Criteria applied over a ledger snapshot. ``start``/``end`` are inclusive."""

    start: Optional[dt.date] = None
    end: Optional[dt.date] = None
    category: Optional[str] = None
    type: Optional[str] = None
    search: Optional[str] = None

    def matches(self, transaction: Transaction) -> bool:
        if self.start is not None and transaction.date < self.start:
            return False
        if self.end is not None and transaction.date > self.end:
            return False
        if self.category is not None and transaction.category != self.category:
            return False
        if self.type is not None and transaction.type != self.type:
            return False
        if self.search:
            needle = self.search.casefold()
            haystack = f"{transaction.description} {transaction.category}".casefold()
            if needle not in haystack:
                return False
        return True


def ledger_order(transaction: Transaction):
    return (transaction.date, transaction.created_at, transaction.id)


class TransactionLedger:
    """Owns income and expense transactions.

    Every successful mutation is published on the event bus after it has been
    persisted; the ledger itself knows nothing about budgets.
    """

    def __init__(
        self,
        storage: StorageBackend,
        categories: CategoryRegistry,
        events: Optional[EventBus] = None,
        clock: Callable[[], dt.datetime] = utcnow,
    ):
        self._storage = storage
        self._categories = categories
        self._events = events if events is not None else EventBus()
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def events(self) -> EventBus:
        return self._events

    async def list(self, filter: Optional[TransactionFilter] = None) -> List[Transaction]:
        """Snapshot ordered newest first: date, then creation time, then id."""
        records = await self._storage.fetch_all(KIND)
        transactions = [Transaction.model_validate(r) for r in records]
        if filter is not None:
            transactions = [t for t in transactions if filter.matches(t)]
        return sorted(transactions, key=ledger_order, reverse=True)

    @asynccontextmanager
    async def frozen(self) -> AsyncIterator[List[Transaction]]:
        """Yield a snapshot while holding the write lock; mutations wait until exit."""
        async with self._lock:
            yield await self.list()

    async def recent(self, limit: int = RECENT_LIMIT) -> List[Transaction]:
        return (await self.list())[:limit]

    async def get(self, transaction_id: int) -> Transaction:
        record = await self._storage.fetch_one(KIND, transaction_id)
        if record is None:
            raise NotFoundError(KIND, transaction_id)
        return Transaction.model_validate(record)

    async def create(self, data: Any) -> Transaction:
        transaction_in = parse_model(TransactionCreate, data)
        await self._check_category(transaction_in.category, transaction_in.type)

        async with self._lock:
            record = transaction_in.model_dump(mode="json")
            record["created_at"] = self._clock().isoformat()
            transaction = Transaction.model_validate(await self._storage.create_one(KIND, record))
            logger.info(
                f"Recorded {transaction.type} {transaction.amount} in {transaction.category!r} "
                f"(id={transaction.id})"
            )
            await self._events.publish(
                TransactionCreated(
                    category=transaction.category,
                    type=transaction.type,
                    amount=transaction.amount,
                )
            )
        return transaction

    async def update(self, transaction_id: int, data: Any) -> Transaction:
        changes = parse_model(TransactionUpdate, data).model_dump(
            mode="json", exclude_unset=True, exclude_none=True
        )
        if not changes:
            raise ValidationError("No fields to update")

        async with self._lock:
            previous = await self.get(transaction_id)
            merged = parse_model(
                TransactionCreate,
                {**previous.model_dump(mode="json", exclude={"id", "created_at"}), **changes},
            )
            await self._check_category(merged.category, merged.type)

            record = await self._storage.update_one(KIND, transaction_id, changes)
            if record is None:
                raise NotFoundError(KIND, transaction_id)
            current = Transaction.model_validate(record)
            logger.info(f"Updated transaction {transaction_id}: {sorted(changes)}")
            await self._events.publish(TransactionUpdated(previous=previous, current=current))
        return current

    async def delete(self, transaction_id: int) -> bool:
        async with self._lock:
            transaction = await self.get(transaction_id)
            if not await self._storage.delete_one(KIND, transaction_id):
                raise NotFoundError(KIND, transaction_id)
            logger.info(f"Deleted transaction {transaction_id}")
            await self._events.publish(
                TransactionDeleted(
                    category=transaction.category,
                    type=transaction.type,
                    amount=transaction.amount,
                )
            )
        return True

    async def _check_category(self, name: str, type: str) -> None:
        category = await self._categories.find(name)
        if category is None:
            raise ValidationError(f"Unknown category {name!r}", field="category")
        if category.type != type and await self._categories.find(name, type) is None:
            raise ValidationError(
                f"Category {name!r} is an {category.type} category, not {type}",
                field="type",
            )

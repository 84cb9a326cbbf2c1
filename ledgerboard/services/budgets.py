import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from ledgerboard.core.errors import DuplicateError, NotFoundError, ValidationError
from ledgerboard.db.base import StorageBackend
from ledgerboard.events import EventBus, TransactionCreated, TransactionDeleted, TransactionUpdated
from ledgerboard.models.base import money_sum, parse_model
from ledgerboard.models.budget import (
    DEFAULT_PERIOD,
    Budget,
    BudgetCreate,
    BudgetOverview,
    BudgetStatus,
    BudgetUpdate,
)
from ledgerboard.models.transaction import Transaction
from ledgerboard.services.categories import CategoryRegistry
from ledgerboard.services.ledger import TransactionLedger

logger = logging.getLogger(__name__)

KIND = "budget"

DANGER_THRESHOLD = 90.0
WARNING_THRESHOLD = 75.0


def budget_status(spent: float, limit: float) -> BudgetStatus:
    """Derive the display status of a budget.

    Tiers are checked top down, so a budget sitting exactly on 90% is
    ``danger`` and one exactly on 75% is ``warning``.
    """
    percentage = spent / limit * 100
    # Float noise (e.g. 0.9 * limit) must not drop an exact threshold a tier
    checked = round(percentage, 9)
    if checked >= DANGER_THRESHOLD:
        tier = "danger"
    elif checked >= WARNING_THRESHOLD:
        tier = "warning"
    else:
        tier = "success"
    return BudgetStatus(
        percentage=percentage,
        tier=tier,
        remaining=max(0.0, limit - spent),
        over_budget=spent > limit,
    )


class BudgetTracker:
    """Owns one budget per expense category and keeps ``spent`` current.

    ``spent`` is a cached aggregate maintained from ledger events: expense
    creations add, deletions subtract (never below zero) and updates reverse
    the old record before applying the new one. ``resync`` re-derives it from
    a ledger snapshot.
    """

    def __init__(self, storage: StorageBackend, categories: CategoryRegistry):
        self._storage = storage
        self._categories = categories
        self._lock = asyncio.Lock()

    def subscribe(self, events: EventBus) -> None:
        events.subscribe(TransactionCreated, self.on_transaction_created)
        events.subscribe(TransactionDeleted, self.on_transaction_deleted)
        events.subscribe(TransactionUpdated, self.on_transaction_updated)

    async def list(self) -> List[Budget]:
        records = await self._storage.fetch_all(KIND)
        return sorted((Budget.model_validate(r) for r in records), key=lambda b: b.id)

    async def statuses(self) -> List[BudgetOverview]:
        return [
            BudgetOverview(**budget.model_dump(), status=budget_status(budget.spent, budget.limit))
            for budget in await self.list()
        ]

    async def get(self, budget_id: int) -> Budget:
        record = await self._storage.fetch_one(KIND, budget_id)
        if record is None:
            raise NotFoundError(KIND, budget_id)
        return Budget.model_validate(record)

    async def get_by_category(self, category: str) -> Optional[Budget]:
        for budget in await self.list():
            if budget.category == category:
                return budget
        return None

    async def create(self, category: str, limit: float, period: str = DEFAULT_PERIOD) -> Budget:
        budget_in = parse_model(BudgetCreate, {"category": category, "limit": limit, "period": period})
        async with self._lock:
            await self._check_category(budget_in.category)
            record = budget_in.model_dump()
            record["spent"] = 0.0
            budget = Budget.model_validate(await self._storage.create_one(KIND, record))
        logger.info(f"Created budget {budget.limit} for {budget.category!r} (id={budget.id})")
        return budget

    async def update(self, budget_id: int, patch: Any) -> Budget:
        changes = parse_model(BudgetUpdate, patch).model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationError("No fields to update")
        async with self._lock:
            current = await self.get(budget_id)
            if changes.get("category", current.category) != current.category:
                await self._check_category(changes["category"], exclude_id=budget_id)
                # Spending tracked so far belongs to the old category
                changes["spent"] = 0.0
            record = await self._storage.update_one(KIND, budget_id, changes)
        if record is None:
            raise NotFoundError(KIND, budget_id)
        logger.info(f"Updated budget {budget_id}: {sorted(changes)}")
        return Budget.model_validate(record)

    async def delete(self, budget_id: int) -> bool:
        async with self._lock:
            deleted = await self._storage.delete_one(KIND, budget_id)
        if not deleted:
            raise NotFoundError(KIND, budget_id)
        logger.info(f"Deleted budget {budget_id}")
        return True

    async def on_transaction_created(self, event: TransactionCreated) -> None:
        if event.type == "expense":
            await self._adjust_spent(event.category, event.amount)

    async def on_transaction_deleted(self, event: TransactionDeleted) -> None:
        if event.type == "expense":
            await self._adjust_spent(event.category, -event.amount)

    async def on_transaction_updated(self, event: TransactionUpdated) -> None:
        previous, current = event.previous, event.current
        if previous.type == "expense":
            await self._adjust_spent(previous.category, -previous.amount)
        if current.type == "expense":
            await self._adjust_spent(current.category, current.amount)

    async def resync(self, transactions: Iterable[Transaction]) -> List[Budget]:
        """Recompute every budget's ``spent`` from a ledger snapshot."""
        grouped: Dict[str, List[float]] = defaultdict(list)
        for transaction in transactions:
            if transaction.type == "expense":
                grouped[transaction.category].append(transaction.amount)

        refreshed = []
        async with self._lock:
            for budget in await self.list():
                spent = money_sum(grouped.get(budget.category, []))
                if spent != budget.spent:
                    logger.info(f"Resynced budget {budget.id} ({budget.category!r}): {budget.spent} -> {spent}")
                    record = await self._storage.update_one(KIND, budget.id, {"spent": spent})
                    if record is not None:
                        budget = Budget.model_validate(record)
                refreshed.append(budget)
        return refreshed

    async def resync_from(self, ledger: TransactionLedger) -> List[Budget]:
        """Resync against ``ledger`` while it is held, so no write slips in between."""
        async with ledger.frozen() as transactions:
            return await self.resync(transactions)

    async def _adjust_spent(self, category: str, delta: float) -> Optional[Budget]:
        async with self._lock:
            budget = await self.get_by_category(category)
            if budget is None:
                logger.debug(f"No budget for {category!r}; ignoring spend change {delta}")
                return None
            spent = max(0.0, money_sum([budget.spent, delta]))
            record = await self._storage.update_one(KIND, budget.id, {"spent": spent})
        logger.debug(f"Budget {budget.id} ({category!r}) spent {budget.spent} -> {spent}")
        return Budget.model_validate(record) if record is not None else None

    async def _check_category(self, category: str, exclude_id: Optional[int] = None) -> None:
        if await self._categories.find(category, "expense") is None:
            raise ValidationError(f"{category!r} is not an expense category", field="category")
        existing = await self.get_by_category(category)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateError(f"A budget for {category!r} already exists")

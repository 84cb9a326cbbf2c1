import logging
from dataclasses import dataclass
from typing import Optional

from ledgerboard.core.config import Settings
from ledgerboard.db.base import StorageBackend
from ledgerboard.db.memory import InMemoryStorage
from ledgerboard.events import EventBus
from ledgerboard.services.analytics import AnalyticsEngine
from ledgerboard.services.budgets import BudgetTracker
from ledgerboard.services.categories import CategoryRegistry
from ledgerboard.services.goals import SavingsGoalTracker
from ledgerboard.services.ledger import TransactionLedger

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> StorageBackend:
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        return InMemoryStorage()
    if backend == "dynamo":
        from ledgerboard.db.dynamo import DynamoStorage

        return DynamoStorage(
            table_name=settings.DYNAMO_TABLE,
            region=settings.DYNAMO_REGION,
            endpoint_url=settings.DYNAMO_ENDPOINT_URL or None,
        )
    raise ValueError(f"Unsupported STORAGE_BACKEND: {settings.STORAGE_BACKEND!r}")


@dataclass
class Container:
    """Every component, built once per process around a single storage backend."""

    settings: Settings
    storage: StorageBackend
    events: EventBus
    categories: CategoryRegistry
    ledger: TransactionLedger
    budgets: BudgetTracker
    goals: SavingsGoalTracker
    analytics: AnalyticsEngine

    @classmethod
    def build(cls, settings: Settings, storage: Optional[StorageBackend] = None) -> "Container":
        storage = storage if storage is not None else build_storage(settings)
        events = EventBus()
        categories = CategoryRegistry(storage)
        ledger = TransactionLedger(storage, categories, events)
        budgets = BudgetTracker(storage, categories)
        budgets.subscribe(events)
        logger.info(f"Components wired on {storage.name} storage")
        return cls(
            settings=settings,
            storage=storage,
            events=events,
            categories=categories,
            ledger=ledger,
            budgets=budgets,
            goals=SavingsGoalTracker(storage),
            analytics=AnalyticsEngine(ledger, categories),
        )

    async def startup(self) -> None:
        if self.settings.SEED_DEFAULT_CATEGORIES:
            await self.categories.seed_defaults()

    async def close(self) -> None:
        await self.storage.close()

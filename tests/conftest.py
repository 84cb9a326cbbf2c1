import pytest

from ledgerboard.db.memory import InMemoryStorage
from ledgerboard.events import EventBus
from ledgerboard.services.budgets import BudgetTracker
from ledgerboard.services.categories import CategoryRegistry
from ledgerboard.services.goals import SavingsGoalTracker
from ledgerboard.services.ledger import TransactionLedger


def expense(amount, category="Groceries", date="2024-03-01", description="Weekly shop"):
    return {"amount": amount, "type": "expense", "category": category, "date": date, "description": description}


def income(amount, category="Salary", date="2024-03-01", description="Paycheck"):
    return {"amount": amount, "type": "income", "category": category, "date": date, "description": description}


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def registry(storage):
    return CategoryRegistry(storage)


@pytest.fixture
def ledger(storage, registry, events):
    return TransactionLedger(storage, registry, events)


@pytest.fixture
def budgets(storage, registry, events):
    tracker = BudgetTracker(storage, registry)
    tracker.subscribe(events)
    return tracker


@pytest.fixture
def goals(storage):
    return SavingsGoalTracker(storage)


@pytest.fixture
async def categories(registry):
    await registry.create({"name": "Groceries", "type": "expense", "icon": "ShoppingCart", "color": "#22C55E"})
    await registry.create({"name": "Rent", "type": "expense", "icon": "Home", "color": "#6366F1"})
    await registry.create({"name": "Salary", "type": "income", "icon": "Briefcase", "color": "#10B981"})
    return await registry.list()

import datetime as dt

import pytest

from conftest import expense, income
from ledgerboard.core.errors import NotFoundError, ValidationError
from ledgerboard.events import TransactionCreated, TransactionDeleted, TransactionUpdated
from ledgerboard.services.ledger import TransactionFilter, TransactionLedger


@pytest.fixture
def published(events):
    seen = []

    async def record(event):
        seen.append(event)

    for event_type in (TransactionCreated, TransactionDeleted, TransactionUpdated):
        events.subscribe(event_type, record)
    return seen


async def test_create_is_visible_immediately(categories, ledger):
    created = await ledger.create(expense(42.5))
    listed = await ledger.list()
    assert [t.id for t in listed].count(created.id) == 1
    assert await ledger.get(created.id) == created
    assert created.date == dt.date(2024, 3, 1)
    assert created.created_at is not None


async def test_ids_increase_monotonically(categories, ledger):
    first = await ledger.create(expense(1))
    await ledger.delete(first.id)
    second = await ledger.create(expense(2))
    assert second.id > first.id


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"amount": 0}, "amount"),
        ({"amount": -5}, "amount"),
        ({"description": ""}, "description"),
        ({"date": "2024-02-30"}, "date"),
        ({"date": "yesterday"}, "date"),
        ({"category": "Nope"}, "category"),
        ({"type": "income"}, "type"),
    ],
)
async def test_create_validation(categories, ledger, published, overrides, field):
    with pytest.raises(ValidationError) as excinfo:
        await ledger.create({**expense(10), **overrides})
    assert excinfo.value.field == field
    assert await ledger.list() == []
    assert published == []


async def test_create_publishes_event(categories, ledger, published):
    await ledger.create(expense(12))
    assert published == [TransactionCreated(category="Groceries", type="expense", amount=12)]


async def test_delete_publishes_event_and_removes(categories, ledger, published):
    created = await ledger.create(income(900))
    await ledger.delete(created.id)
    assert published[-1] == TransactionDeleted(category="Salary", type="income", amount=900)
    with pytest.raises(NotFoundError):
        await ledger.get(created.id)
    with pytest.raises(NotFoundError):
        await ledger.delete(created.id)


async def test_update_revalidates_and_publishes(categories, ledger, published):
    created = await ledger.create(expense(20))
    updated = await ledger.update(created.id, {"amount": 35, "category": "Rent"})
    assert updated.amount == 35
    assert updated.category == "Rent"
    assert updated.created_at == created.created_at
    assert published[-1] == TransactionUpdated(previous=created, current=updated)

    with pytest.raises(ValidationError) as excinfo:
        await ledger.update(created.id, {"type": "income"})
    assert excinfo.value.field == "type"
    with pytest.raises(ValidationError):
        await ledger.update(created.id, {})
    with pytest.raises(NotFoundError):
        await ledger.update(999, {"amount": 1})


async def test_list_order_date_then_created_at(categories, storage, registry, events):
    ticks = iter(dt.datetime(2024, 3, 1, 12, 0, second) for second in range(60))
    ledger = TransactionLedger(storage, registry, events, clock=lambda: next(ticks))

    a = await ledger.create(expense(1, date="2024-03-01"))
    b = await ledger.create(expense(2, date="2024-03-05"))
    c = await ledger.create(expense(3, date="2024-03-01"))
    assert [t.id for t in await ledger.list()] == [b.id, c.id, a.id]


async def test_list_returns_snapshot(categories, ledger):
    await ledger.create(expense(5))
    snapshot = await ledger.list()
    snapshot.clear()
    assert len(await ledger.list()) == 1


async def test_filters(categories, ledger):
    await ledger.create(expense(10, date="2024-01-15", description="Market"))
    await ledger.create(expense(20, category="Rent", date="2024-02-01", description="February rent"))
    await ledger.create(income(1000, date="2024-02-28"))

    in_feb = await ledger.list(TransactionFilter(start=dt.date(2024, 2, 1), end=dt.date(2024, 2, 28)))
    assert {t.amount for t in in_feb} == {20, 1000}
    assert [t.amount for t in await ledger.list(TransactionFilter(category="Groceries"))] == [10]
    assert [t.amount for t in await ledger.list(TransactionFilter(type="income"))] == [1000]
    assert [t.amount for t in await ledger.list(TransactionFilter(search="rent"))] == [20]


async def test_recent(categories, ledger):
    for day in range(1, 8):
        await ledger.create(expense(day, date=f"2024-03-0{day}"))
    recent = await ledger.recent()
    assert [t.amount for t in recent] == [7, 6, 5, 4, 3]

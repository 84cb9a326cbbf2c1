import pytest

from conftest import expense
from ledgerboard.core.errors import DuplicateError, NotFoundError, ValidationError
from ledgerboard.models.category import DEFAULT_COLOR, DEFAULT_ICON
from ledgerboard.services.categories import DEFAULT_CATEGORIES


async def test_create_and_list(registry):
    created = await registry.create({"name": "Groceries", "type": "expense"})
    assert created.id == 1
    assert created.icon == DEFAULT_ICON
    assert created.color == DEFAULT_COLOR
    assert [c.name for c in await registry.list()] == ["Groceries"]


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"name": "", "type": "expense"}, "name"),
        ({"name": "   ", "type": "expense"}, "name"),
        ({"name": "Gifts", "type": "transfer"}, "type"),
        ({"name": "Gifts", "type": "expense", "color": "red"}, "color"),
    ],
)
async def test_create_rejects_bad_input(registry, payload, field):
    with pytest.raises(ValidationError) as excinfo:
        await registry.create(payload)
    assert excinfo.value.field == field
    assert await registry.list() == []


async def test_name_unique_per_type(registry):
    await registry.create({"name": "Bonus", "type": "income"})
    with pytest.raises(DuplicateError):
        await registry.create({"name": "Bonus", "type": "income"})
    # Same name under the other type is allowed
    await registry.create({"name": "Bonus", "type": "expense"})
    assert len(await registry.list()) == 2


async def test_get_by_name_unknown_returns_placeholder(registry):
    placeholder = await registry.get_by_name("Vanished")
    assert placeholder.is_placeholder
    assert placeholder.name == "Vanished"
    assert placeholder.type == "expense"
    assert placeholder.icon == DEFAULT_ICON
    assert placeholder.color == DEFAULT_COLOR


async def test_get_by_name_with_type_hint(registry):
    await registry.create({"name": "Bonus", "type": "expense", "color": "#111111"})
    await registry.create({"name": "Bonus", "type": "income", "color": "#222222"})
    assert (await registry.get_by_name("Bonus")).color == "#111111"
    assert (await registry.get_by_name("Bonus", "income")).color == "#222222"


async def test_list_by_type(categories, registry):
    assert [c.name for c in await registry.list_by_type("income")] == ["Salary"]


async def test_update(categories, registry):
    updated = await registry.update(1, {"color": "#000000"})
    assert updated.color == "#000000"
    assert updated.name == "Groceries"

    with pytest.raises(ValidationError):
        await registry.update(1, {})
    with pytest.raises(ValidationError):
        await registry.update(1, {"name": ""})
    with pytest.raises(DuplicateError):
        await registry.update(1, {"name": "Rent"})
    with pytest.raises(NotFoundError):
        await registry.update(99, {"name": "Other"})


async def test_delete_does_not_cascade(categories, registry, ledger):
    await ledger.create(expense(10))
    await registry.delete(1)
    assert (await registry.get_by_name("Groceries")).is_placeholder
    assert len(await ledger.list()) == 1

    with pytest.raises(NotFoundError):
        await registry.delete(1)


async def test_seed_defaults_only_when_empty(registry):
    assert await registry.seed_defaults() == len(DEFAULT_CATEGORIES)
    assert await registry.seed_defaults() == 0
    assert len(await registry.list()) == len(DEFAULT_CATEGORIES)

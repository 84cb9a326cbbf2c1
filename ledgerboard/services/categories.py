import asyncio
import logging
from typing import Any, Iterable, List, Optional

from ledgerboard.core.errors import DuplicateError, NotFoundError, ValidationError
from ledgerboard.db.base import StorageBackend
from ledgerboard.models.base import parse_model
from ledgerboard.models.category import Category, CategoryCreate, CategoryUpdate, placeholder_category

logger = logging.getLogger(__name__)

KIND = "category"

DEFAULT_CATEGORIES = [
    {"name": "Food & Dining", "type": "expense", "icon": "UtensilsCrossed", "color": "#EF4444"},
    {"name": "Transportation", "type": "expense", "icon": "Car", "color": "#F59E0B"},
    {"name": "Shopping", "type": "expense", "icon": "ShoppingBag", "color": "#8B5CF6"},
    {"name": "Entertainment", "type": "expense", "icon": "Film", "color": "#EC4899"},
    {"name": "Bills & Utilities", "type": "expense", "icon": "Receipt", "color": "#6366F1"},
    {"name": "Healthcare", "type": "expense", "icon": "Heart", "color": "#14B8A6"},
    {"name": "Salary", "type": "income", "icon": "Briefcase", "color": "#10B981"},
    {"name": "Freelance", "type": "income", "icon": "Laptop", "color": "#22C55E"},
    {"name": "Investments", "type": "income", "icon": "TrendingUp", "color": "#0EA5E9"},
]


def find_category(categories: Iterable[Category], name: str, type: Optional[str] = None) -> Optional[Category]:
    """First category matching ``name`` (and ``type`` if given), by id order."""
    for category in categories:
        if category.name == name and (type is None or category.type == type):
            return category
    return None


def resolve_category(categories: Iterable[Category], name: str, type: Optional[str] = None) -> Category:
    """Like ``find_category`` but never fails: unknown names get a placeholder."""
    return find_category(categories, name, type) or placeholder_category(name)


class CategoryRegistry:
    """Owns income and expense categories.

    Other components refer to categories by name only, so deleting or
    renaming one leaves existing transactions and budgets pointing at the
    old name. Lookups for such names fall back to a placeholder.
    """

    def __init__(self, storage: StorageBackend):
        self._storage = storage
        self._lock = asyncio.Lock()

    async def list(self) -> List[Category]:
        records = await self._storage.fetch_all(KIND)
        return sorted((Category.model_validate(r) for r in records), key=lambda c: c.id)

    async def list_by_type(self, type: str) -> List[Category]:
        return [c for c in await self.list() if c.type == type]

    async def get(self, category_id: int) -> Category:
        record = await self._storage.fetch_one(KIND, category_id)
        if record is None:
            raise NotFoundError(KIND, category_id)
        return Category.model_validate(record)

    async def find(self, name: str, type: Optional[str] = None) -> Optional[Category]:
        return find_category(await self.list(), name, type)

    async def get_by_name(self, name: str, type: Optional[str] = None) -> Category:
        return (await self.find(name, type)) or placeholder_category(name)

    async def create(self, data: Any) -> Category:
        category_in = parse_model(CategoryCreate, data)
        async with self._lock:
            await self._ensure_unique(category_in.name, category_in.type)
            record = await self._storage.create_one(KIND, category_in.model_dump())
        category = Category.model_validate(record)
        logger.info(f"Created {category.type} category {category.name!r} (id={category.id})")
        return category

    async def update(self, category_id: int, data: Any) -> Category:
        changes = parse_model(CategoryUpdate, data).model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationError("No fields to update")
        async with self._lock:
            current = await self.get(category_id)
            merged = current.model_copy(update=changes)
            if (merged.name, merged.type) != (current.name, current.type):
                await self._ensure_unique(merged.name, merged.type, exclude_id=category_id)
            record = await self._storage.update_one(KIND, category_id, changes)
        if record is None:
            raise NotFoundError(KIND, category_id)
        logger.info(f"Updated category {category_id}: {sorted(changes)}")
        return Category.model_validate(record)

    async def delete(self, category_id: int) -> bool:
        async with self._lock:
            deleted = await self._storage.delete_one(KIND, category_id)
        if not deleted:
            raise NotFoundError(KIND, category_id)
        logger.info(f"Deleted category {category_id}")
        return True

    async def seed_defaults(self) -> int:
        """Create the stock categories when the registry is empty."""
        if await self.list():
            return 0
        for data in DEFAULT_CATEGORIES:
            await self.create(data)
        logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories")
        return len(DEFAULT_CATEGORIES)

    async def _ensure_unique(self, name: str, type: str, exclude_id: Optional[int] = None) -> None:
        existing = find_category(
            (c for c in await self.list() if c.id != exclude_id),
            name,
            type,
        )
        if existing is not None:
            raise DuplicateError(f"A {type} category named {name!r} already exists")

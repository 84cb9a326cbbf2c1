from typing import Optional

from pydantic import Field

from ledgerboard.models.base import Entity, EntryType, InputModel

DEFAULT_ICON = "Circle"
DEFAULT_COLOR = "#6B7280"
HEX_COLOR_PATTERN = r"^#(?:[0-9A-Fa-f]{3}){1,2}$"


class CategoryCreate(InputModel):
    name: str = Field(min_length=1)
    type: EntryType
    icon: str = DEFAULT_ICON
    color: str = Field(default=DEFAULT_COLOR, pattern=HEX_COLOR_PATTERN)


class CategoryUpdate(InputModel):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[EntryType] = None
    icon: Optional[str] = None
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)


class Category(Entity):
    id: Optional[int] = None  # None for the placeholder of an unknown name
    name: str
    type: EntryType = "expense"
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR

    @property
    def is_placeholder(self) -> bool:
        return self.id is None


def placeholder_category(name: str) -> Category:
    """Stand-in returned for names that no longer (or never did) exist."""
    return Category(id=None, name=name, type="expense", icon=DEFAULT_ICON, color=DEFAULT_COLOR)

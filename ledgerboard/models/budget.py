from typing import Literal, Optional

from pydantic import BaseModel, Field

from ledgerboard.models.base import Entity, InputModel

DEFAULT_PERIOD = "monthly"

BudgetTier = Literal["success", "warning", "danger"]


class BudgetCreate(InputModel):
    category: str = Field(min_length=1)
    limit: float = Field(gt=0)
    # Only "monthly" is meaningful; other values are stored but never reset anything
    period: str = DEFAULT_PERIOD


class BudgetUpdate(InputModel):
    category: Optional[str] = Field(default=None, min_length=1)
    limit: Optional[float] = Field(default=None, gt=0)
    period: Optional[str] = None


class Budget(Entity):
    id: int
    category: str
    limit: float
    period: str = DEFAULT_PERIOD
    spent: float = Field(default=0.0, ge=0)


class BudgetStatus(BaseModel):
    percentage: float
    tier: BudgetTier
    remaining: float
    over_budget: bool


class BudgetOverview(Budget):
    status: BudgetStatus

import datetime as dt
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field

from ledgerboard.models.base import Entity, InputModel

GoalTier = Literal["success", "primary", "warning", "danger"]
DeadlineUrgency = Literal["overdue", "soon", "on_track"]


class SavingsGoalCreate(InputModel):
    name: str = Field(min_length=1)
    target_amount: float = Field(gt=0, validation_alias=AliasChoices("target_amount", "targetAmount"))
    current_amount: float = Field(default=0.0, ge=0, validation_alias=AliasChoices("current_amount", "currentAmount"))
    deadline: dt.date


class SavingsGoalUpdate(InputModel):
    name: Optional[str] = Field(default=None, min_length=1)
    target_amount: Optional[float] = Field(
        default=None, gt=0, validation_alias=AliasChoices("target_amount", "targetAmount")
    )
    deadline: Optional[dt.date] = None


class FundsDeposit(InputModel):
    amount: float = Field(gt=0)


class SavingsGoal(Entity):
    id: int
    name: str
    target_amount: float = Field(validation_alias=AliasChoices("target_amount", "targetAmount"))
    current_amount: float = Field(default=0.0, validation_alias=AliasChoices("current_amount", "currentAmount"))
    deadline: dt.date


class GoalProgress(BaseModel):
    percentage: float
    is_completed: bool
    days_remaining: int
    is_overdue: bool
    deadline_urgency: DeadlineUrgency
    tier: GoalTier


class GoalOverview(SavingsGoal):
    progress: GoalProgress

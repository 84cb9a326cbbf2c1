import asyncio
import datetime as dt
import logging
import math
from typing import Any, Callable, List, Optional, Union

from ledgerboard.core.errors import NotFoundError, ValidationError
from ledgerboard.db.base import StorageBackend
from ledgerboard.models.base import money_sum, parse_model
from ledgerboard.models.goal import (
    FundsDeposit,
    GoalOverview,
    GoalProgress,
    SavingsGoal,
    SavingsGoalCreate,
    SavingsGoalUpdate,
)
from ledgerboard.services.ledger import utcnow

logger = logging.getLogger(__name__)

KIND = "savings_goal"

SOON_DAYS = 30
SECONDS_PER_DAY = 86400


def days_until(deadline: dt.date, now: Union[dt.date, dt.datetime]) -> int:
    """Whole days left until ``deadline``, rounded up. Negative means overdue."""
    if isinstance(now, dt.datetime):
        deadline_start = dt.datetime.combine(deadline, dt.time.min, tzinfo=now.tzinfo)
        return math.ceil((deadline_start - now).total_seconds() / SECONDS_PER_DAY)
    return (deadline - now).days


def goal_progress(goal: SavingsGoal, now: Union[dt.date, dt.datetime, None] = None) -> GoalProgress:
    """Progress of a goal. Low progress maps to ``danger``, the reverse of budgets."""
    now = now if now is not None else utcnow().date()
    raw_percentage = goal.current_amount / goal.target_amount * 100
    percentage = min(100.0, raw_percentage)
    days_remaining = days_until(goal.deadline, now)

    if raw_percentage >= 100:
        tier = "success"
    elif raw_percentage >= 75:
        tier = "primary"
    elif raw_percentage >= 50:
        tier = "warning"
    else:
        tier = "danger"

    if days_remaining < 0:
        urgency = "overdue"
    elif days_remaining < SOON_DAYS:
        urgency = "soon"
    else:
        urgency = "on_track"

    return GoalProgress(
        percentage=percentage,
        is_completed=goal.current_amount >= goal.target_amount,
        days_remaining=days_remaining,
        is_overdue=days_remaining < 0,
        deadline_urgency=urgency,
        tier=tier,
    )


class SavingsGoalTracker:
    """Owns savings goals. ``current_amount`` only grows, and never past the target."""

    def __init__(self, storage: StorageBackend, clock: Callable[[], dt.datetime] = utcnow):
        self._storage = storage
        self._clock = clock
        self._lock = asyncio.Lock()

    async def list(self) -> List[SavingsGoal]:
        records = await self._storage.fetch_all(KIND)
        return sorted((SavingsGoal.model_validate(r) for r in records), key=lambda g: g.id)

    def describe(self, goal: SavingsGoal, now: Union[dt.date, dt.datetime, None] = None) -> GoalOverview:
        """Goal plus progress, with "today" taken from the tracker's clock."""
        now = now if now is not None else self._clock().date()
        return GoalOverview(**goal.model_dump(), progress=goal_progress(goal, now))

    async def overview(self, now: Union[dt.date, dt.datetime, None] = None) -> List[GoalOverview]:
        return [self.describe(goal, now) for goal in await self.list()]

    async def get(self, goal_id: int) -> SavingsGoal:
        record = await self._storage.fetch_one(KIND, goal_id)
        if record is None:
            raise NotFoundError(KIND, goal_id)
        return SavingsGoal.model_validate(record)

    async def create(self, data: Any) -> SavingsGoal:
        goal_in = parse_model(SavingsGoalCreate, data)
        record = goal_in.model_dump(mode="json")
        record["current_amount"] = min(goal_in.current_amount, goal_in.target_amount)
        async with self._lock:
            goal = SavingsGoal.model_validate(await self._storage.create_one(KIND, record))
        logger.info(f"Created savings goal {goal.name!r} target={goal.target_amount} (id={goal.id})")
        return goal

    async def update(self, goal_id: int, patch: Any) -> SavingsGoal:
        changes = parse_model(SavingsGoalUpdate, patch).model_dump(
            mode="json", exclude_unset=True, exclude_none=True
        )
        if not changes:
            raise ValidationError("No fields to update")
        async with self._lock:
            current = await self.get(goal_id)
            target = changes.get("target_amount", current.target_amount)
            if current.current_amount > target:
                changes["current_amount"] = target
            record = await self._storage.update_one(KIND, goal_id, changes)
        if record is None:
            raise NotFoundError(KIND, goal_id)
        logger.info(f"Updated savings goal {goal_id}: {sorted(changes)}")
        return SavingsGoal.model_validate(record)

    async def add_funds(self, goal_id: int, amount: Optional[float]) -> SavingsGoal:
        deposit = parse_model(FundsDeposit, {"amount": amount})
        async with self._lock:
            goal = await self.get(goal_id)
            new_amount = min(goal.target_amount, money_sum([goal.current_amount, deposit.amount]))
            record = await self._storage.update_one(KIND, goal_id, {"current_amount": new_amount})
        if record is None:
            raise NotFoundError(KIND, goal_id)
        logger.info(f"Added {deposit.amount} to savings goal {goal_id}: {goal.current_amount} -> {new_amount}")
        return SavingsGoal.model_validate(record)

    async def delete(self, goal_id: int) -> bool:
        async with self._lock:
            deleted = await self._storage.delete_one(KIND, goal_id)
        if not deleted:
            raise NotFoundError(KIND, goal_id)
        logger.info(f"Deleted savings goal {goal_id}")
        return True

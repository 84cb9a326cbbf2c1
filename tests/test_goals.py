import datetime as dt

import pytest

from ledgerboard.core.errors import NotFoundError, ValidationError
from ledgerboard.models.goal import SavingsGoal
from ledgerboard.db.memory import InMemoryStorage
from ledgerboard.services.goals import SavingsGoalTracker, days_until, goal_progress


def make_goal(current, target=1000, deadline="2024-12-31"):
    return SavingsGoal(id=1, name="Trip", target_amount=target, current_amount=current, deadline=deadline)


async def test_emergency_fund_scenario(goals):
    goal = await goals.create(
        {"name": "Emergency Fund", "targetAmount": 1000, "currentAmount": 0, "deadline": "2024-12-31"}
    )
    assert goal.current_amount == 0

    goal = await goals.add_funds(goal.id, 1200)
    assert goal.current_amount == 1000
    assert goal_progress(goal, dt.date(2024, 6, 1)).is_completed


async def test_add_funds_clamps_repeatedly(goals):
    goal = await goals.create({"name": "Bike", "target_amount": 300, "deadline": "2025-05-01"})
    for _ in range(5):
        goal = await goals.add_funds(goal.id, 120)
        assert goal.current_amount <= goal.target_amount
    assert goal.current_amount == 300


async def test_add_funds_accumulates(goals):
    goal = await goals.create({"name": "Bike", "target_amount": 300, "current_amount": 50, "deadline": "2025-05-01"})
    goal = await goals.add_funds(goal.id, 25.5)
    assert goal.current_amount == 75.5
    assert (await goals.get(goal.id)).current_amount == 75.5


async def test_add_funds_errors(goals):
    goal = await goals.create({"name": "Bike", "target_amount": 300, "deadline": "2025-05-01"})
    for amount in (0, -10):
        with pytest.raises(ValidationError) as excinfo:
            await goals.add_funds(goal.id, amount)
        assert excinfo.value.field == "amount"
    with pytest.raises(NotFoundError):
        await goals.add_funds(404, 10)
    assert (await goals.get(goal.id)).current_amount == 0


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"name": "", "target_amount": 100, "deadline": "2025-01-01"}, "name"),
        ({"name": "Car", "target_amount": 0, "deadline": "2025-01-01"}, "target_amount"),
        ({"name": "Car", "target_amount": 100, "deadline": "soon"}, "deadline"),
        ({"name": "Car", "target_amount": 100, "current_amount": -1, "deadline": "2025-01-01"}, "current_amount"),
    ],
)
async def test_create_validation(goals, payload, field):
    with pytest.raises(ValidationError) as excinfo:
        await goals.create(payload)
    assert excinfo.value.field == field
    assert await goals.list() == []


async def test_create_clamps_current_amount(goals):
    goal = await goals.create({"name": "Car", "target_amount": 100, "current_amount": 250, "deadline": "2025-01-01"})
    assert goal.current_amount == 100


async def test_update_reclamps_to_new_target(goals):
    goal = await goals.create({"name": "Car", "target_amount": 500, "current_amount": 400, "deadline": "2025-01-01"})
    goal = await goals.update(goal.id, {"target_amount": 300, "name": "Used car"})
    assert goal.name == "Used car"
    assert goal.current_amount == 300
    with pytest.raises(ValidationError):
        await goals.update(goal.id, {})
    with pytest.raises(NotFoundError):
        await goals.update(99, {"name": "x"})


async def test_delete(goals):
    goal = await goals.create({"name": "Car", "target_amount": 100, "deadline": "2025-01-01"})
    assert await goals.delete(goal.id)
    with pytest.raises(NotFoundError):
        await goals.delete(goal.id)


async def test_overview_includes_progress(goals):
    await goals.create({"name": "Car", "target_amount": 200, "current_amount": 100, "deadline": "2025-01-01"})
    [overview] = await goals.overview(dt.date(2024, 12, 1))
    assert overview.progress.percentage == 50
    assert overview.progress.tier == "warning"
    assert overview.progress.days_remaining == 31


@pytest.mark.parametrize(
    "current, tier",
    [(1000, "success"), (750, "primary"), (999, "primary"), (500, "warning"), (499, "danger"), (0, "danger")],
)
def test_progress_tiers(current, tier):
    assert goal_progress(make_goal(current), dt.date(2024, 1, 1)).tier == tier


def test_progress_flags():
    progress = goal_progress(make_goal(250), dt.date(2024, 12, 20))
    assert progress.percentage == 25
    assert not progress.is_completed
    assert progress.days_remaining == 11
    assert progress.deadline_urgency == "soon"
    assert not progress.is_overdue

    overdue = goal_progress(make_goal(250), dt.date(2025, 1, 2))
    assert overdue.days_remaining == -2
    assert overdue.is_overdue
    assert overdue.deadline_urgency == "overdue"

    assert goal_progress(make_goal(0), dt.date(2024, 1, 1)).deadline_urgency == "on_track"


def test_days_until_rounds_up_partial_days():
    deadline = dt.date(2024, 12, 31)
    assert days_until(deadline, dt.datetime(2024, 12, 29, 18, 0)) == 2
    assert days_until(deadline, dt.datetime(2024, 12, 31, 0, 0)) == 0
    assert days_until(deadline, dt.datetime(2024, 12, 31, 9, 0)) == 0
    assert days_until(deadline, dt.date(2024, 12, 30)) == 1


async def test_overview_counts_days_from_utc_clock():
    # 23:30 UTC on the 29th is already the 30th east of UTC, but the tracker follows UTC
    tracker = SavingsGoalTracker(
        InMemoryStorage(), clock=lambda: dt.datetime(2024, 12, 29, 23, 30, tzinfo=dt.timezone.utc)
    )
    goal = await tracker.create({"name": "Trip", "target_amount": 1000, "deadline": "2024-12-31"})

    assert tracker.describe(goal).progress.days_remaining == 2
    [overview] = await tracker.overview()
    assert overview.progress.days_remaining == 2

from typing import List

from fastapi import APIRouter, Depends, status

from ledgerboard.container import Container
from ledgerboard.models.goal import FundsDeposit, GoalOverview, SavingsGoalCreate, SavingsGoalUpdate
from ledgerboard.routers.deps import get_container

router = APIRouter()


@router.get("/", response_model=List[GoalOverview])
async def list_goals(container: Container = Depends(get_container)):
    return await container.goals.overview()


@router.get("/{goal_id}", response_model=GoalOverview)
async def get_goal(goal_id: int, container: Container = Depends(get_container)):
    return container.goals.describe(await container.goals.get(goal_id))


@router.post("/", response_model=GoalOverview, status_code=status.HTTP_201_CREATED)
async def create_goal(goal: SavingsGoalCreate, container: Container = Depends(get_container)):
    return container.goals.describe(await container.goals.create(goal))


@router.put("/{goal_id}", response_model=GoalOverview)
async def update_goal(
    goal_id: int,
    goal_update: SavingsGoalUpdate,
    container: Container = Depends(get_container),
):
    return container.goals.describe(await container.goals.update(goal_id, goal_update))


@router.post("/{goal_id}/funds", response_model=GoalOverview)
async def add_funds(goal_id: int, deposit: FundsDeposit, container: Container = Depends(get_container)):
    return container.goals.describe(await container.goals.add_funds(goal_id, deposit.amount))


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(goal_id: int, container: Container = Depends(get_container)):
    await container.goals.delete(goal_id)
    return None

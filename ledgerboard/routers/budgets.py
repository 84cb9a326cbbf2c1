from typing import List

from fastapi import APIRouter, Depends, status

from ledgerboard.container import Container
from ledgerboard.models.budget import Budget, BudgetCreate, BudgetOverview, BudgetUpdate
from ledgerboard.routers.deps import get_container
from ledgerboard.services.budgets import budget_status

router = APIRouter()


def _overview(budget: Budget) -> BudgetOverview:
    return BudgetOverview(**budget.model_dump(), status=budget_status(budget.spent, budget.limit))


@router.get("/", response_model=List[BudgetOverview])
async def list_budgets(container: Container = Depends(get_container)):
    return await container.budgets.statuses()


@router.get("/{budget_id}", response_model=BudgetOverview)
async def get_budget(budget_id: int, container: Container = Depends(get_container)):
    return _overview(await container.budgets.get(budget_id))


@router.post("/", response_model=BudgetOverview, status_code=status.HTTP_201_CREATED)
async def create_budget(budget: BudgetCreate, container: Container = Depends(get_container)):
    created = await container.budgets.create(budget.category, budget.limit, budget.period)
    return _overview(created)


@router.put("/{budget_id}", response_model=BudgetOverview)
async def update_budget(
    budget_id: int,
    budget_update: BudgetUpdate,
    container: Container = Depends(get_container),
):
    return _overview(await container.budgets.update(budget_id, budget_update))


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget(budget_id: int, container: Container = Depends(get_container)):
    await container.budgets.delete(budget_id)
    return None


@router.post("/resync", response_model=List[BudgetOverview])
async def resync_budgets(container: Container = Depends(get_container)):
    """Recompute every budget's spent amount from the current ledger."""
    await container.budgets.resync_from(container.ledger)
    return await container.budgets.statuses()

from typing import Dict

from fastapi import APIRouter, Depends

from ledgerboard.container import Container
from ledgerboard.routers.deps import get_container
from ledgerboard.services.analytics import DEFAULT_RANGE

router = APIRouter()


@router.get("/chart")
async def chart_data(range: str = DEFAULT_RANGE, container: Container = Depends(get_container)) -> Dict:
    """
    Category breakdown, donut total and daily trend for expenses in ``range``
    (thisWeek, thisMonth, last3Months or thisYear).
    """
    return await container.analytics.chart_data(range)


@router.get("/summary")
async def monthly_summary(container: Container = Depends(get_container)) -> Dict:
    """Income, expenses and net savings for the current month."""
    return await container.analytics.summary()

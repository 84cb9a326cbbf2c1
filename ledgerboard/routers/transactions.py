from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ledgerboard.container import Container
from ledgerboard.models.base import EntryType
from ledgerboard.models.transaction import Transaction, TransactionCreate, TransactionUpdate
from ledgerboard.routers.deps import get_container
from ledgerboard.services.ledger import RECENT_LIMIT, TransactionFilter

router = APIRouter()


@router.get("/", response_model=List[Transaction])
async def list_transactions(
    start: Optional[date] = None,
    end: Optional[date] = None,
    category: Optional[str] = None,
    type: Optional[EntryType] = None,
    search: Optional[str] = None,
    container: Container = Depends(get_container),
):
    """
    Newest first. ``start``/``end`` are inclusive YYYY-MM-DD dates.
    """
    criteria = TransactionFilter(start=start, end=end, category=category, type=type, search=search)
    return await container.ledger.list(criteria)


@router.get("/recent", response_model=List[Transaction])
async def recent_transactions(
    limit: int = Query(default=RECENT_LIMIT, ge=1, le=100),
    container: Container = Depends(get_container),
):
    return await container.ledger.recent(limit)


@router.get("/{transaction_id}", response_model=Transaction)
async def get_transaction(transaction_id: int, container: Container = Depends(get_container)):
    return await container.ledger.get(transaction_id)


@router.post("/", response_model=Transaction, status_code=status.HTTP_201_CREATED)
async def create_transaction(transaction: TransactionCreate, container: Container = Depends(get_container)):
    return await container.ledger.create(transaction)


@router.put("/{transaction_id}", response_model=Transaction)
async def update_transaction(
    transaction_id: int,
    transaction_update: TransactionUpdate,
    container: Container = Depends(get_container),
):
    return await container.ledger.update(transaction_id, transaction_update)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(transaction_id: int, container: Container = Depends(get_container)):
    await container.ledger.delete(transaction_id)
    return None

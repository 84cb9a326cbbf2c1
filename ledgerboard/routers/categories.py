from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ledgerboard.container import Container
from ledgerboard.models.base import EntryType
from ledgerboard.models.category import Category, CategoryCreate, CategoryUpdate
from ledgerboard.routers.deps import get_container

router = APIRouter()


@router.get("/", response_model=List[Category])
async def list_categories(type: Optional[EntryType] = None, container: Container = Depends(get_container)):
    if type is not None:
        return await container.categories.list_by_type(type)
    return await container.categories.list()


@router.get("/by-name/{name}", response_model=Category)
async def get_category_by_name(name: str, container: Container = Depends(get_container)):
    """Never 404s: unknown names come back as a placeholder with ``id`` null."""
    return await container.categories.get_by_name(name)


@router.get("/{category_id}", response_model=Category)
async def get_category(category_id: int, container: Container = Depends(get_container)):
    return await container.categories.get(category_id)


@router.post("/", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(category: CategoryCreate, container: Container = Depends(get_container)):
    return await container.categories.create(category)


@router.put("/{category_id}", response_model=Category)
async def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    container: Container = Depends(get_container),
):
    return await container.categories.update(category_id, category_update)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: int, container: Container = Depends(get_container)):
    await container.categories.delete(category_id)
    return None

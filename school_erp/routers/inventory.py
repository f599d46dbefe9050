from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, require_permission, resolve_school_id
from ..models.inventory import TransactionType
from ..models.user import User
from ..services.inventory_service import InventoryService
from ..utils.formatting import iso

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = None
    quantity: int = Field(0, ge=0)
    unit: Optional[str] = "pcs"
    min_quantity: int = Field(0, ge=0)
    location: Optional[str] = None


class ItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = None
    unit: Optional[str] = None
    min_quantity: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None


class TransactionCreate(BaseModel):
    item_id: UUID
    type: TransactionType
    quantity: int
    notes: Optional[str] = None


def item_to_dict(item) -> dict:
    return {
        "id": str(item.id),
        "name": item.name,
        "category": item.category,
        "quantity": item.quantity,
        "unit": item.unit,
        "min_quantity": item.min_quantity,
        "location": item.location,
        "low_stock": item.quantity <= item.min_quantity,
    }


def transaction_to_dict(transaction) -> dict:
    return {
        "id": str(transaction.id),
        "item_id": str(transaction.item_id),
        "type": transaction.type.value,
        "quantity": transaction.quantity,
        "notes": transaction.notes,
        "performed_by": str(transaction.performed_by) if transaction.performed_by else None,
        "created_at": iso(transaction.created_at),
    }


@router.get("")
async def list_items(
    category: Optional[str] = Query(None),
    user: User = Depends(require_permission(Permission.INVENTORY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    items = await InventoryService(db).list_for_school(resolve_school_id(user), category)
    return [item_to_dict(i) for i in items]


@router.post("", status_code=201)
async def create_item(
    payload: ItemCreate,
    user: User = Depends(require_permission(Permission.INVENTORY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    item = await InventoryService(db).create({**payload.model_dump(), "school_id": resolve_school_id(user)})
    return item_to_dict(item)


@router.post("/transaction", status_code=201)
async def record_transaction(
    payload: TransactionCreate,
    user: User = Depends(require_permission(Permission.INVENTORY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Stock movement; OUT is rejected when it would take stock below zero"""
    service = InventoryService(db)
    school_id = resolve_school_id(user)
    transaction = await service.record_transaction(
        school_id,
        payload.item_id,
        payload.type,
        payload.quantity,
        notes=payload.notes,
        performed_by=user.id,
    )
    item = await service.get_in_school(payload.item_id, school_id)
    return {"transaction": transaction_to_dict(transaction), "item": item_to_dict(item)}


@router.get("/{item_id}/transactions")
async def item_transactions(
    item_id: UUID,
    user: User = Depends(require_permission(Permission.INVENTORY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = InventoryService(db)
    item = await service.get_in_school(item_id, resolve_school_id(user))
    return [transaction_to_dict(t) for t in await service.transactions_for(item)]


@router.put("/{item_id}")
async def update_item(
    item_id: UUID,
    payload: ItemUpdate,
    user: User = Depends(require_permission(Permission.INVENTORY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    # stock only moves through transactions
    service = InventoryService(db)
    item = await service.get_in_school(item_id, resolve_school_id(user))
    item = await service.update(item, payload.model_dump(exclude_unset=True))
    return item_to_dict(item)


@router.delete("/{item_id}")
async def delete_item(
    item_id: UUID,
    user: User = Depends(require_permission(Permission.INVENTORY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = InventoryService(db)
    item = await service.get_in_school(item_id, resolve_school_id(user))
    await service.soft_delete(item)
    return {"message": "Item deleted successfully"}

import logging
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from ..core.exceptions import NotFoundError, ValidationError
from ..models.inventory import InventoryItem, InventoryTransaction, TransactionType

logger = logging.getLogger(__name__)


def apply_transaction(current: int, type: TransactionType, quantity: int) -> int:
    """New stock level after a movement; stock never goes negative."""
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than zero", field="quantity")
    if type == TransactionType.IN:
        return current + quantity
    if type == TransactionType.OUT:
        if quantity > current:
            raise ValidationError("Insufficient stock", field="quantity")
        return current - quantity
    # ADJUSTMENT sets the counted stock level
    return quantity


class InventoryService(BaseService[InventoryItem]):
    resource_name = "Item"

    def __init__(self, db: AsyncSession):
        super().__init__(InventoryItem, db)

    async def list_for_school(self, school_id: UUID, category: Optional[str] = None) -> List[InventoryItem]:
        stmt = select(InventoryItem).where(
            InventoryItem.school_id == school_id,
            InventoryItem.is_deleted == False,
        )
        if category:
            stmt = stmt.where(InventoryItem.category == category)
        return (await self.db.execute(stmt.order_by(InventoryItem.name))).scalars().all()

    async def record_transaction(
        self,
        school_id: UUID,
        item_id: UUID,
        type: TransactionType,
        quantity: int,
        notes: Optional[str] = None,
        performed_by: Optional[UUID] = None,
    ) -> InventoryTransaction:
        stmt = (
            select(InventoryItem)
            .where(
                InventoryItem.id == item_id,
                InventoryItem.school_id == school_id,
                InventoryItem.is_deleted == False,
            )
            .with_for_update()
        )
        item = (await self.db.execute(stmt)).scalar_one_or_none()
        if not item:
            raise NotFoundError("Item")

        item.quantity = apply_transaction(item.quantity, type, quantity)
        transaction = InventoryTransaction(
            item_id=item.id,
            type=type,
            quantity=quantity,
            notes=notes,
            performed_by=performed_by,
        )
        self.db.add(transaction)
        await self.db.commit()
        await self.db.refresh(transaction)
        await self.db.refresh(item)

        if item.quantity <= item.min_quantity:
            logger.warning(f"Inventory item {item.name} ({item.id}) is low: {item.quantity}")
        return transaction

    async def transactions_for(self, item: InventoryItem) -> List[InventoryTransaction]:
        stmt = (
            select(InventoryTransaction)
            .where(InventoryTransaction.item_id == item.id)
            .order_by(InventoryTransaction.created_at.desc())
        )
        return (await self.db.execute(stmt)).scalars().all()

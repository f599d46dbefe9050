from typing import List
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from ..models.transport import Bus


class TransportService(BaseService[Bus]):
    resource_name = "Bus"

    def __init__(self, db: AsyncSession):
        super().__init__(Bus, db)

    async def list_for_school(self, school_id: UUID) -> List[Bus]:
        stmt = select(Bus).where(Bus.school_id == school_id, Bus.is_deleted == False)
        return (await self.db.execute(stmt.order_by(Bus.number_plate))).scalars().all()

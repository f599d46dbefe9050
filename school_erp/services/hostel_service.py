import logging
from datetime import date
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from .base_service import BaseService
from .people_service import StudentService
from ..core.exceptions import NotFoundError, ValidationError
from ..models.hostel import Hostel, HostelRoom, HostelAllocation, AllocationStatus

logger = logging.getLogger(__name__)


class HostelService(BaseService[Hostel]):
    resource_name = "Hostel"

    def __init__(self, db: AsyncSession):
        super().__init__(Hostel, db)

    async def list_for_school(self, school_id: UUID) -> List[Hostel]:
        stmt = select(Hostel).where(Hostel.school_id == school_id, Hostel.is_deleted == False)
        return (await self.db.execute(stmt.order_by(Hostel.name))).scalars().all()

    async def get_room(self, room_id: UUID, school_id: UUID, lock: bool = False) -> HostelRoom:
        stmt = (
            select(HostelRoom)
            .join(Hostel, Hostel.id == HostelRoom.hostel_id)
            .where(
                HostelRoom.id == room_id,
                HostelRoom.is_deleted == False,
                Hostel.school_id == school_id,
                Hostel.is_deleted == False,
            )
        )
        if lock:
            stmt = stmt.with_for_update(of=HostelRoom)
        room = (await self.db.execute(stmt)).scalar_one_or_none()
        if not room:
            raise NotFoundError("Room")
        return room

    async def add_room(self, hostel: Hostel, data: dict) -> HostelRoom:
        room = HostelRoom(hostel_id=hostel.id, **data)
        self.db.add(room)
        await self.db.commit()
        await self.db.refresh(room)
        return room

    async def update_room(self, room: HostelRoom, data: dict) -> HostelRoom:
        if data.get("capacity") is not None and data["capacity"] < len(room.active_allocations):
            raise ValidationError("Capacity cannot be below current occupancy", field="capacity")
        for key, value in data.items():
            setattr(room, key, value)
        await self.db.commit()
        await self.db.refresh(room)
        return room

    async def delete_room(self, room: HostelRoom):
        if room.active_allocations:
            raise ValidationError("Room still has active allocations")
        room.is_deleted = True
        await self.db.commit()

    async def active_count(self, room_id: UUID) -> int:
        stmt = select(func.count()).select_from(HostelAllocation).where(
            HostelAllocation.room_id == room_id,
            HostelAllocation.status == AllocationStatus.ACTIVE,
        )
        return (await self.db.execute(stmt)).scalar()

    async def allocate(
        self,
        school_id: UUID,
        room_id: UUID,
        student_id: UUID,
        start_date: date,
        end_date: Optional[date] = None,
    ) -> HostelAllocation:
        """Place a student in a room; a full room or an already housed student is rejected."""
        room = await self.get_room(room_id, school_id, lock=True)

        occupied = await self.active_count(room.id)
        if occupied >= room.capacity:
            raise ValidationError("Room is full", field="room_id")

        student = await StudentService(self.db).get_in_school(student_id, school_id)

        stmt = select(HostelAllocation.id).where(
            HostelAllocation.student_id == student.id,
            HostelAllocation.status == AllocationStatus.ACTIVE,
        )
        if (await self.db.execute(stmt)).first() is not None:
            raise ValidationError("Student already has an active hostel allocation", field="student_id")

        allocation = HostelAllocation(
            room_id=room.id,
            student_id=student.id,
            start_date=start_date,
            end_date=end_date,
            status=AllocationStatus.ACTIVE,
        )
        self.db.add(allocation)
        await self.db.commit()
        await self.db.refresh(allocation)
        logger.info(f"Allocated student {student.id} to room {room.id} ({occupied + 1}/{room.capacity})")
        return allocation

    async def vacate(self, school_id: UUID, allocation_id: UUID) -> HostelAllocation:
        stmt = (
            select(HostelAllocation)
            .join(HostelRoom, HostelRoom.id == HostelAllocation.room_id)
            .join(Hostel, Hostel.id == HostelRoom.hostel_id)
            .where(HostelAllocation.id == allocation_id, Hostel.school_id == school_id)
        )
        allocation = (await self.db.execute(stmt)).scalar_one_or_none()
        if not allocation:
            raise NotFoundError("Allocation")
        if allocation.status == AllocationStatus.VACATED:
            raise ValidationError("Allocation already vacated")
        allocation.status = AllocationStatus.VACATED
        allocation.end_date = date.today()
        await self.db.commit()
        await self.db.refresh(allocation)
        return allocation

from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, require_permission, resolve_school_id
from ..models.user import User
from ..services.hostel_service import HostelService
from ..utils.formatting import iso

router = APIRouter(prefix="/api/hostels", tags=["Hostel"])


class HostelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field("MIXED", pattern="^(BOYS|GIRLS|MIXED)$")
    address: Optional[str] = None
    warden_name: Optional[str] = None
    warden_phone: Optional[str] = None


class HostelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[str] = Field(None, pattern="^(BOYS|GIRLS|MIXED)$")
    address: Optional[str] = None
    warden_name: Optional[str] = None
    warden_phone: Optional[str] = None


class RoomCreate(BaseModel):
    room_number: str = Field(..., min_length=1, max_length=20)
    floor: Optional[int] = None
    capacity: int = Field(..., gt=0)


class RoomUpdate(BaseModel):
    room_number: Optional[str] = Field(None, min_length=1, max_length=20)
    floor: Optional[int] = None
    capacity: Optional[int] = Field(None, gt=0)


class AllocationCreate(BaseModel):
    room_id: UUID
    student_id: UUID
    start_date: date
    end_date: Optional[date] = None


def allocation_to_dict(allocation) -> dict:
    return {
        "id": str(allocation.id),
        "room_id": str(allocation.room_id),
        "student_id": str(allocation.student_id),
        "student_name": allocation.student.name if allocation.student else None,
        "start_date": iso(allocation.start_date),
        "end_date": iso(allocation.end_date),
        "status": allocation.status.value,
    }


def room_to_dict(room) -> dict:
    active = room.active_allocations
    return {
        "id": str(room.id),
        "hostel_id": str(room.hostel_id),
        "room_number": room.room_number,
        "floor": room.floor,
        "capacity": room.capacity,
        "occupied": len(active),
        "allocations": [allocation_to_dict(a) for a in active],
    }


def hostel_to_dict(hostel, with_rooms: bool = False) -> dict:
    rooms = [r for r in hostel.rooms if not r.is_deleted]
    data = {
        "id": str(hostel.id),
        "name": hostel.name,
        "type": hostel.type,
        "address": hostel.address,
        "warden_name": hostel.warden_name,
        "warden_phone": hostel.warden_phone,
        "room_count": len(rooms),
        "capacity": sum(r.capacity for r in rooms),
        "occupied": sum(len(r.active_allocations) for r in rooms),
    }
    if with_rooms:
        data["rooms"] = [room_to_dict(r) for r in rooms]
    return data


@router.get("")
async def list_hostels(
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    return [hostel_to_dict(h) for h in await HostelService(db).list_for_school(resolve_school_id(user))]


@router.post("", status_code=201)
async def create_hostel(
    payload: HostelCreate,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    hostel = await HostelService(db).create({**payload.model_dump(), "school_id": resolve_school_id(user)})
    return hostel_to_dict(hostel, with_rooms=True)


@router.post("/allocations", status_code=201)
async def allocate_room(
    payload: AllocationCreate,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Allocate a student to a room; rejected when the room is full"""
    allocation = await HostelService(db).allocate(
        resolve_school_id(user), payload.room_id, payload.student_id, payload.start_date, payload.end_date
    )
    return allocation_to_dict(allocation)


@router.put("/allocations/{allocation_id}/vacate")
async def vacate_allocation(
    allocation_id: UUID,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    allocation = await HostelService(db).vacate(resolve_school_id(user), allocation_id)
    return allocation_to_dict(allocation)


@router.put("/rooms/{room_id}")
async def update_room(
    room_id: UUID,
    payload: RoomUpdate,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = HostelService(db)
    room = await service.get_room(room_id, resolve_school_id(user))
    room = await service.update_room(room, payload.model_dump(exclude_unset=True))
    return room_to_dict(room)


@router.delete("/rooms/{room_id}")
async def delete_room(
    room_id: UUID,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = HostelService(db)
    room = await service.get_room(room_id, resolve_school_id(user))
    await service.delete_room(room)
    return {"message": "Room deleted successfully"}


@router.get("/{hostel_id}")
async def get_hostel(
    hostel_id: UUID,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Hostel with its rooms and current occupants"""
    hostel = await HostelService(db).get_in_school(hostel_id, resolve_school_id(user))
    return hostel_to_dict(hostel, with_rooms=True)


@router.put("/{hostel_id}")
async def update_hostel(
    hostel_id: UUID,
    payload: HostelUpdate,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = HostelService(db)
    hostel = await service.get_in_school(hostel_id, resolve_school_id(user))
    hostel = await service.update(hostel, payload.model_dump(exclude_unset=True))
    return hostel_to_dict(hostel)


@router.delete("/{hostel_id}")
async def delete_hostel(
    hostel_id: UUID,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = HostelService(db)
    hostel = await service.get_in_school(hostel_id, resolve_school_id(user))
    await service.soft_delete(hostel)
    return {"message": "Hostel deleted successfully"}


@router.post("/{hostel_id}/rooms", status_code=201)
async def add_room(
    hostel_id: UUID,
    payload: RoomCreate,
    user: User = Depends(require_permission(Permission.HOSTEL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = HostelService(db)
    hostel = await service.get_in_school(hostel_id, resolve_school_id(user))
    return room_to_dict(await service.add_room(hostel, payload.model_dump()))

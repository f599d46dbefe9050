from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.user import User
from ..services.transport_service import TransportService

router = APIRouter(prefix="/api/transport", tags=["Transport"])

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class BusCreate(BaseModel):
    number_plate: str = Field(..., min_length=1, max_length=20)
    route_name: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    pickup_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    arrival_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    school_id: Optional[UUID] = None


class BusUpdate(BaseModel):
    number_plate: Optional[str] = Field(None, min_length=1, max_length=20)
    route_name: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    pickup_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    arrival_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    has_started: Optional[bool] = None
    has_arrived: Optional[bool] = None


def bus_to_dict(bus) -> dict:
    return {
        "id": str(bus.id),
        "school_id": str(bus.school_id),
        "number_plate": bus.number_plate,
        "route_name": bus.route_name,
        "driver_name": bus.driver_name,
        "driver_phone": bus.driver_phone,
        "pickup_time": bus.pickup_time,
        "arrival_time": bus.arrival_time,
        "has_started": bus.has_started,
        "has_arrived": bus.has_arrived,
    }


@router.get("/buses")
async def list_buses(
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    buses = await TransportService(db).list_for_school(resolve_school_id(user, school_id))
    return [bus_to_dict(b) for b in buses]


@router.post("/buses", status_code=201)
async def create_bus(
    payload: BusCreate,
    user: User = Depends(require_permission(Permission.TRANSPORT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    data = payload.model_dump(exclude={"school_id"})
    bus = await TransportService(db).create({**data, "school_id": resolve_school_id(user, payload.school_id)})
    return bus_to_dict(bus)


@router.put("/buses/{bus_id}")
async def update_bus(
    bus_id: UUID,
    payload: BusUpdate,
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(require_permission(Permission.TRANSPORT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Update the bus record or its trip status"""
    service = TransportService(db)
    bus = await service.get_in_school(bus_id, resolve_school_id(user, school_id))
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("has_arrived"):
        changes.setdefault("has_started", True)
    bus = await service.update(bus, changes)
    return bus_to_dict(bus)

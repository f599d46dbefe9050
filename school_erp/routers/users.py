from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, require_permission
from ..models.user import User, Role
from ..services.stats_service import StatsService
from ..services.user_service import UserService
from ..utils.formatting import iso, sid, user_summary

router = APIRouter(prefix="/api", tags=["Users"])


@router.get("/users")
async def list_users(
    role: Optional[Role] = Query(None),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    user: User = Depends(require_permission(Permission.USER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Users of the caller's school; the super admin sees every school unless filtered"""
    scope = school_id if user.is_super_admin else user.school_id
    users = await UserService(db).list_for_school(scope, role)
    return [
        {
            **user_summary(u),
            "school_id": sid(u.school_id),
            "is_active": u.is_active,
            "created_at": iso(u.created_at),
        }
        for u in users
    ]


@router.get("/stats")
async def dashboard_stats(
    user: User = Depends(require_permission(Permission.STATS_VIEW_ALL)),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard counters"""
    return await StatsService(db).dashboard(user)

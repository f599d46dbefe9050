from uuid import UUID
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import PermissionDenied, ValidationError
from ..core.permissions import Permission, get_current_user, require_permission, require_roles
from ..models.user import User, Role
from ..schemas.school_schemas import SchoolCreate, SchoolUpdate
from ..services.school_service import SchoolService
from ..utils.cache_decorators import invalidate_school_stats
from ..utils.formatting import iso
from ..utils.uploads import IMAGE_EXTENSIONS, file_extension, save_upload

router = APIRouter(prefix="/api", tags=["Schools"])


def school_to_dict(school) -> dict:
    return {
        "id": str(school.id),
        "name": school.name,
        "code": school.code,
        "address": school.address,
        "email": school.email,
        "phone": school.phone,
        "website": school.website,
        "logo": school.logo,
        "is_active": school.is_active,
        "latitude": school.latitude,
        "longitude": school.longitude,
        "radius_meters": school.radius_meters,
        "created_at": iso(school.created_at),
    }


@router.get("/schools")
async def list_schools(
    user: User = Depends(require_permission(Permission.SCHOOL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """All schools (super admin)"""
    return [school_to_dict(s) for s in await SchoolService(db).list_schools()]


@router.post("/schools", status_code=201)
async def create_school(
    payload: SchoolCreate,
    user: User = Depends(require_permission(Permission.SCHOOL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    school = await SchoolService(db).create(payload.model_dump())
    await invalidate_school_stats(school.id)
    return school_to_dict(school)


@router.get("/schools/{school_id}")
async def get_school(
    school_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not user.is_super_admin and user.school_id != school_id:
        raise PermissionDenied()
    return school_to_dict(await SchoolService(db).get_in_school(school_id, None))


@router.put("/schools/{school_id}")
async def update_school(
    school_id: UUID,
    payload: SchoolUpdate,
    user: User = Depends(require_roles(Role.ADMIN, Role.SCHOOL_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Super admin edits any school, a school admin only their own"""
    if not user.is_super_admin and user.school_id != school_id:
        raise PermissionDenied()
    service = SchoolService(db)
    school = await service.get_in_school(school_id, None)
    school = await service.update(school, payload.model_dump(exclude_unset=True))
    return school_to_dict(school)


@router.delete("/schools/{school_id}")
async def delete_school(
    school_id: UUID,
    user: User = Depends(require_permission(Permission.SCHOOL_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = SchoolService(db)
    school = await service.get_in_school(school_id, None)
    await service.soft_delete(school)
    await invalidate_school_stats(school_id)
    return {"message": "School deleted successfully"}


@router.post("/schools/me/logo")
async def upload_school_logo(
    logo: UploadFile = File(...),
    user: User = Depends(require_roles(Role.SCHOOL_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """School admin replaces their school's logo"""
    if file_extension(logo.filename) not in IMAGE_EXTENSIONS:
        raise ValidationError("Logo must be an image", field="logo")
    saved = await save_upload(logo)
    service = SchoolService(db)
    school = await service.get_in_school(user.school_id, None)
    school = await service.update(school, {"logo": saved.url})
    return {"logo": school.logo}


@router.get("/classes/{class_id}/school")
async def get_school_for_class(
    class_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """School of a class, including its geofence"""
    school = await SchoolService(db).get_for_class(class_id)
    if not user.is_super_admin and user.school_id != school.id:
        raise PermissionDenied()
    return school_to_dict(school)

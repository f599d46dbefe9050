from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import client_ip, get_current_user
from ..models.user import User, Role
from ..schemas.auth_schemas import LoginRequest, ProfileUpdate
from ..services.academic_service import get_student_profile, get_teacher_profile
from ..services.auth_service import AuthService
from ..services.people_service import ParentService
from ..utils.formatting import sid, user_summary

router = APIRouter(prefix="/api", tags=["Auth"])


def school_summary(school):
    if school is None:
        return None
    return {"id": str(school.id), "name": school.name, "code": school.code, "logo": school.logo}


@router.post("/auth/login")
async def login(payload: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    token, user = await AuthService(db).login(payload.email, payload.password, client_ip(request))
    return {
        "token": token,
        "user": {
            **user_summary(user),
            "school_id": sid(user.school_id),
            "school": school_summary(user.school),
        },
    }


@router.get("/me")
async def get_profile(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Current user with the role specific profile"""
    profile = {
        **user_summary(user),
        "school_id": sid(user.school_id),
        "school": school_summary(user.school),
        "is_active": user.is_active,
    }
    if user.role == Role.STUDENT:
        student = await get_student_profile(db, user)
        if student:
            profile["student"] = {
                "id": str(student.id),
                "class_id": sid(student.class_id),
                "class_name": student.school_class.name if student.school_class else None,
                "admission_number": student.admission_number,
                "grade": student.grade,
                "section": student.section,
            }
    elif user.role == Role.TEACHER:
        teacher = await get_teacher_profile(db, user)
        if teacher:
            profile["teacher"] = {
                "id": str(teacher.id),
                "qualification": teacher.qualification,
                "specialization": teacher.specialization,
            }
    elif user.role == Role.PARENT:
        children = await ParentService(db).children_of_user(user)
        profile["children"] = [
            {"id": str(c.id), "name": c.name, "class_id": sid(c.class_id)}
            for c in children
        ]
    return profile


@router.put("/me")
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update phone number and/or password"""
    user = await AuthService(db).update_profile(
        user,
        phone=payload.phone,
        old_password=payload.old_password,
        new_password=payload.new_password,
    )
    return {"message": "Profile updated successfully", "user": user_summary(user)}

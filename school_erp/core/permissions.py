# school_erp/core/permissions.py
"""Role based access control and the authenticated-user dependency."""
import enum
import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .exceptions import AuthenticationError, PermissionDenied, ValidationError
from .logging import audit
from .security import decode_access_token
from ..models.user import Role, User

logger = logging.getLogger(__name__)


class Permission(str, enum.Enum):
    STATS_VIEW_ALL = "stats:view_all"
    SCHOOL_MANAGE = "school:manage"
    USER_MANAGE = "user:manage"
    STUDENT_MANAGE = "student:manage"
    STUDENT_VIEW = "student:view"
    TEACHER_MANAGE = "teacher:manage"
    PARENT_MANAGE = "parent:manage"
    SUBJECT_MANAGE = "subject:manage"
    CLASS_MANAGE = "class:manage"
    ATTENDANCE_MANAGE_CLASS = "attendance:manage_class"
    EXAM_MANAGE = "exam:manage"
    EXAM_MANAGE_RESULTS = "exam:manage_results"
    ELEARNING_VIEW = "elearning:view"
    ELEARNING_MANAGE = "elearning:manage"
    LIBRARY_MANAGE = "library:manage"
    HOSTEL_MANAGE = "hostel:manage"
    INVENTORY_MANAGE = "inventory:manage"
    TRANSPORT_MANAGE = "transport:manage"
    FINANCE_MANAGE = "finance:manage"
    NOTICE_MANAGE = "notice:manage"
    NEWSLETTER_VIEW = "newsletter:view"
    NEWSLETTER_MANAGE = "newsletter:manage"
    CERTIFICATE_VIEW = "certificate:view"
    CERTIFICATE_MANAGE = "certificate:manage"
    LEAVE_APPLY = "leave:apply"
    LEAVE_APPROVE_PARENT = "leave:approve_parent"
    LEAVE_APPROVE_ADMIN = "leave:approve_admin"
    CHILD_VIEW_ALL = "child:view_all"
    CHILD_VIEW_ATTENDANCE = "child:view_attendance"
    CHILD_VIEW_RESULTS = "child:view_results"
    CHILD_VIEW_FEES = "child:view_fees"
    TALLY_MANAGE = "tally:manage"
    DEPARTMENT_MANAGE = "department:manage"


_CHILD_PERMISSIONS = {
    Permission.CHILD_VIEW_ALL,
    Permission.CHILD_VIEW_ATTENDANCE,
    Permission.CHILD_VIEW_RESULTS,
    Permission.CHILD_VIEW_FEES,
}

ROLE_PERMISSIONS = {
    Role.ADMIN: set(Permission),
    Role.SCHOOL_ADMIN: set(Permission) - _CHILD_PERMISSIONS - {
        Permission.SCHOOL_MANAGE,
        Permission.LEAVE_APPLY,
        Permission.LEAVE_APPROVE_PARENT,
    },
    Role.TEACHER: {
        Permission.STUDENT_VIEW,
        Permission.ATTENDANCE_MANAGE_CLASS,
        Permission.EXAM_MANAGE,
        Permission.EXAM_MANAGE_RESULTS,
        Permission.ELEARNING_VIEW,
        Permission.ELEARNING_MANAGE,
        Permission.NEWSLETTER_VIEW,
        Permission.CERTIFICATE_VIEW,
    },
    Role.STUDENT: {
        Permission.ELEARNING_VIEW,
        Permission.NEWSLETTER_VIEW,
        Permission.CERTIFICATE_VIEW,
        Permission.LEAVE_APPLY,
    },
    Role.PARENT: _CHILD_PERMISSIONS | {
        Permission.LEAVE_APPROVE_PARENT,
        Permission.NEWSLETTER_VIEW,
        Permission.CERTIFICATE_VIEW,
    },
    Role.STAFF: {
        Permission.LIBRARY_MANAGE,
        Permission.HOSTEL_MANAGE,
        Permission.INVENTORY_MANAGE,
        Permission.TRANSPORT_MANAGE,
        Permission.NEWSLETTER_VIEW,
    },
}


def has_permission(role: Role, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(role, set())


bearer_scheme = HTTPBearer(auto_error=False)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Unauthorized: No token provided")

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Unauthorized: Invalid token")

    try:
        user_id = UUID(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Unauthorized: Invalid token")

    result = await db.execute(
        select(User).where(User.id == user_id, User.is_deleted == False)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError("Unauthorized: User not found")
    if not user.is_active:
        raise AuthenticationError("Unauthorized: Account is disabled")
    return user


def require_permission(permission: Permission):
    """Dependency factory: the current user must hold `permission`."""
    async def dependency(
        request: Request,
        user: User = Depends(get_current_user),
    ) -> User:
        if not has_permission(user.role, permission):
            audit(
                user.id,
                "ACCESS_DENIED",
                request.url.path,
                client_ip(request),
                {"required": permission.value, "role": user.role.value},
            )
            logger.warning(f"Access denied for {user.id} on {request.url.path} ({permission.value})")
            raise PermissionDenied()
        return user
    return dependency


def require_roles(*roles: Role):
    """Dependency factory: the current user must have one of `roles`."""
    async def dependency(
        request: Request,
        user: User = Depends(get_current_user),
    ) -> User:
        if user.role not in roles:
            audit(
                user.id,
                "ACCESS_DENIED",
                request.url.path,
                client_ip(request),
                {"required_roles": [r.value for r in roles], "role": user.role.value},
            )
            raise PermissionDenied()
        return user
    return dependency


def resolve_school_id(user: User, requested: Optional[UUID] = None) -> UUID:
    """School a request operates on: any school for the super admin, otherwise the user's own."""
    if user.is_super_admin:
        school_id = requested or user.school_id
        if school_id is None:
            raise ValidationError("school_id is required", field="school_id")
        return school_id
    if user.school_id is None:
        raise PermissionDenied("User is not attached to a school")
    return user.school_id

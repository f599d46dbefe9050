import logging
from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession

from .user_service import UserService
from ..core.config import settings
from ..core.exceptions import AuthenticationError, PermissionDenied, ValidationError
from ..core.logging import audit
from ..core.security import (
    create_access_token,
    hash_password,
    is_password_hash,
    verify_password,
)
from ..models.user import User, Role

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)

    async def login(self, email: str, password: str, ip: Optional[str] = None) -> Tuple[str, User]:
        user = await self.users.get_by_email(email)
        if not user or not verify_password(password, user.password):
            audit(user.id if user else None, "LOGIN_FAILED", "auth", ip, {"email": email})
            raise AuthenticationError("Invalid credentials")

        if not user.is_active:
            audit(user.id, "LOGIN_BLOCKED", "auth", ip, {"reason": "inactive"})
            raise PermissionDenied("Account is disabled")

        if not is_password_hash(user.password):
            # Seeded accounts carry plain passwords until their first login
            user.password = hash_password(password)
            await self.db.commit()

        token = create_access_token({
            "sub": str(user.id),
            "role": user.role.value,
            "school_id": str(user.school_id) if user.school_id else None,
        })
        audit(user.id, "LOGIN_SUCCESS", "auth", ip, {"role": user.role.value})
        return token, user

    async def update_profile(
        self,
        user: User,
        phone: Optional[str] = None,
        old_password: Optional[str] = None,
        new_password: Optional[str] = None,
    ) -> User:
        if phone is not None:
            user.phone = phone
        if new_password:
            if not old_password or not verify_password(old_password, user.password):
                raise ValidationError("Current password is incorrect", field="old_password")
            user.password = hash_password(new_password)
        await self.db.commit()
        await self.db.refresh(user)
        return user


async def bootstrap_super_admin(db: AsyncSession) -> Optional[User]:
    """Create the configured super admin on first start."""
    if not settings.bootstrap_admin_password:
        return None
    users = UserService(db)
    existing = await users.get_by_email(settings.bootstrap_admin_email)
    if existing:
        return existing
    user = await users.build_user(
        email=settings.bootstrap_admin_email,
        password=settings.bootstrap_admin_password,
        name="Super Admin",
        role=Role.ADMIN,
    )
    await db.commit()
    logger.info(f"Created super admin {user.email}")
    return user

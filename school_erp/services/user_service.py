from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from ..core.exceptions import ConflictError
from ..core.security import hash_password
from ..models.user import User, Role


class UserService(BaseService[User]):
    resource_name = "User"

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower(), User.is_deleted == False)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def build_user(
        self,
        email: str,
        password: str,
        name: str,
        role: Role,
        school_id: Optional[UUID] = None,
        phone: Optional[str] = None,
    ) -> User:
        """Add a new account to the session without committing."""
        email = email.strip().lower()
        if await self.get_by_email(email):
            raise ConflictError("email", email)
        user = User(
            email=email,
            password=hash_password(password),
            name=name,
            role=role,
            school_id=school_id,
            phone=phone,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def list_for_school(self, school_id: Optional[UUID], role: Optional[Role] = None) -> List[User]:
        stmt = select(User).where(User.is_deleted == False)
        if school_id is not None:
            stmt = stmt.where(User.school_id == school_id)
        if role is not None:
            stmt = stmt.where(User.role == role)
        result = await self.db.execute(stmt.order_by(User.name))
        return result.scalars().all()

    async def ids_by_role(self, school_id: Optional[UUID], role: Role) -> List[UUID]:
        stmt = select(User.id).where(
            User.role == role,
            User.is_active == True,
            User.is_deleted == False,
        )
        if school_id is not None:
            stmt = stmt.where(User.school_id == school_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

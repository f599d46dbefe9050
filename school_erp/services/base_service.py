# school_erp/services/base_service.py
"""Shared persistence helpers for the per-resource services."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Type, Any, Dict, Optional, TypeVar, Generic

from ..core.exceptions import NotFoundError
from ..utils.pagination import Paginator

T = TypeVar('T')


class BaseService(Generic[T]):
    resource_name = "Record"

    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    def _active(self, stmt):
        if hasattr(self.model, 'is_deleted'):
            stmt = stmt.where(self.model.is_deleted == False)
        return stmt

    async def get(self, id: Any) -> Optional[T]:
        result = await self.db.execute(self._active(select(self.model).where(self.model.id == id)))
        return result.scalar_one_or_none()

    async def get_in_school(self, id: Any, school_id: Any) -> T:
        """Fetch a live record owned by ``school_id`` or raise 404.

        ``school_id=None`` skips the tenant filter (super admin scope).
        """
        stmt = self._active(select(self.model).where(self.model.id == id))
        if school_id is not None and hasattr(self.model, 'school_id'):
            stmt = stmt.where(self.model.school_id == school_id)
        obj = (await self.db.execute(stmt)).scalar_one_or_none()
        if not obj:
            raise NotFoundError(self.resource_name)
        return obj

    async def paginate(self, stmt, page: int = 1, size: int = 20) -> Dict[str, Any]:
        """Run an already ordered select one page at a time."""
        total = (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar()
        result = await self.db.execute(stmt.offset(Paginator.calculate_offset(page, size)).limit(size))
        return {
            "items": result.scalars().all(),
            "total": total,
            "page": page,
            "size": size,
        }

    async def create(self, obj_in: Dict) -> T:
        obj = self.model(**obj_in)
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def update(self, obj: T, obj_in: Dict) -> T:
        for key, value in obj_in.items():
            setattr(obj, key, value)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def soft_delete(self, obj: T) -> T:
        obj.is_deleted = True
        await self.db.commit()
        return obj

    async def hard_delete(self, obj: T):
        await self.db.delete(obj)
        await self.db.commit()

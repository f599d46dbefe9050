from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from ..core.exceptions import ConflictError, NotFoundError
from ..models.school import School
from ..models.academic import SchoolClass


class SchoolService(BaseService[School]):
    resource_name = "School"

    def __init__(self, db: AsyncSession):
        super().__init__(School, db)

    async def list_schools(self) -> List[School]:
        result = await self.db.execute(
            select(School).where(School.is_deleted == False).order_by(School.name)
        )
        return result.scalars().all()

    async def create(self, obj_in: dict) -> School:
        code = obj_in["code"].strip().upper()
        existing = await self.db.execute(select(School).where(School.code == code))
        if existing.scalar_one_or_none():
            raise ConflictError("code", code)
        obj_in = {**obj_in, "code": code}
        return await super().create(obj_in)

    async def get_for_class(self, class_id) -> School:
        stmt = (
            select(School)
            .join(SchoolClass, SchoolClass.school_id == School.id)
            .where(SchoolClass.id == class_id, SchoolClass.is_deleted == False)
        )
        school = (await self.db.execute(stmt)).scalar_one_or_none()
        if not school:
            raise NotFoundError("Class")
        return school

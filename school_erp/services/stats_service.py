from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from ..models.academic import SchoolClass
from ..models.finance import Payment
from ..models.messaging import Message
from ..models.people import Student, Teacher, Parent
from ..models.school import School
from ..models.user import User
from ..utils.cache_decorators import cached


def _stats_key(self, user) -> str:
    if user.is_super_admin:
        return "global:all"
    return f"{user.school_id}:summary"


class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, model, *conditions) -> int:
        stmt = select(func.count()).select_from(model).where(model.is_deleted == False, *conditions)
        return (await self.db.execute(stmt)).scalar()

    @cached("stats", expire=timedelta(minutes=5), key_func=_stats_key)
    async def dashboard(self, user: User) -> dict:
        """Global counters for the super admin, school counters for everyone else."""
        if user.is_super_admin:
            revenue = (await self.db.execute(
                select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.is_deleted == False)
            )).scalar()
            return {
                "schools": await self._count(School),
                "users": await self._count(User),
                "revenue": float(revenue or 0),
                "messages": await self._count(Message),
            }
        school_id = user.school_id
        return {
            "students": await self._count(Student, Student.school_id == school_id),
            "teachers": await self._count(Teacher, Teacher.school_id == school_id),
            "classes": await self._count(SchoolClass, SchoolClass.school_id == school_id),
            "parents": await self._count(Parent, Parent.school_id == school_id),
        }

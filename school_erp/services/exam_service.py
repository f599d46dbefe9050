from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from .base_service import BaseService
from .academic_service import SubjectService, ensure_class_access
from .people_service import StudentService
from ..core.exceptions import NotFoundError, ValidationError
from ..models.exam import Exam, ExamPaper, ExamResult
from ..models.people import Student
from ..models.user import User


class ExamService(BaseService[Exam]):
    resource_name = "Exam"

    def __init__(self, db: AsyncSession):
        super().__init__(Exam, db)

    async def list_for_school(self, school_id: Optional[UUID]) -> List[Exam]:
        stmt = select(Exam).where(Exam.is_deleted == False)
        if school_id is not None:
            stmt = stmt.where(Exam.school_id == school_id)
        result = await self.db.execute(stmt.order_by(Exam.year.desc(), Exam.name))
        return result.scalars().all()

    async def delete_exam(self, exam: Exam):
        """Remove an exam together with its papers and results."""
        await self.db.execute(delete(ExamResult).where(ExamResult.exam_id == exam.id))
        await self.db.execute(delete(ExamPaper).where(ExamPaper.exam_id == exam.id))
        await self.db.delete(exam)
        await self.db.commit()

    async def get_paper(self, exam: Exam, subject_id: UUID) -> ExamPaper:
        stmt = select(ExamPaper).where(
            ExamPaper.exam_id == exam.id,
            ExamPaper.subject_id == subject_id,
            ExamPaper.is_deleted == False,
        )
        paper = (await self.db.execute(stmt)).scalar_one_or_none()
        if not paper:
            raise NotFoundError("Exam paper")
        return paper

    async def save_paper(self, user: User, exam: Exam, subject_id: UUID, data: dict) -> ExamPaper:
        """Create or replace the paper for one subject of an exam."""
        await SubjectService(self.db).get_in_school(subject_id, exam.school_id)
        await ensure_class_access(self.db, user, subject_id=subject_id)

        stmt = select(ExamPaper).where(
            ExamPaper.exam_id == exam.id,
            ExamPaper.subject_id == subject_id,
        )
        paper = (await self.db.execute(stmt)).scalar_one_or_none()
        if paper is None:
            paper = ExamPaper(exam_id=exam.id, subject_id=subject_id)
            self.db.add(paper)
        paper.is_deleted = False
        paper.questions = data.get("questions") or []
        paper.duration_minutes = data.get("duration_minutes")
        paper.total_marks = data.get("total_marks")
        paper.instructions = data.get("instructions")
        paper.status = data.get("status") or "draft"
        await self.db.commit()
        await self.db.refresh(paper)
        return paper


class ExamResultService(BaseService[ExamResult]):
    resource_name = "Exam result"

    def __init__(self, db: AsyncSession):
        super().__init__(ExamResult, db)

    async def list_results(
        self,
        school_id: Optional[UUID],
        exam_id: Optional[UUID] = None,
        class_id: Optional[UUID] = None,
        subject_id: Optional[UUID] = None,
        student_ids: Optional[List[UUID]] = None,
    ) -> List[ExamResult]:
        stmt = (
            select(ExamResult)
            .join(Exam, Exam.id == ExamResult.exam_id)
            .join(Student, Student.id == ExamResult.student_id)
            .where(ExamResult.is_deleted == False, Exam.is_deleted == False)
        )
        if school_id is not None:
            stmt = stmt.where(Exam.school_id == school_id)
        if exam_id is not None:
            stmt = stmt.where(ExamResult.exam_id == exam_id)
        if subject_id is not None:
            stmt = stmt.where(ExamResult.subject_id == subject_id)
        if class_id is not None:
            stmt = stmt.where(Student.class_id == class_id)
        if student_ids is not None:
            stmt = stmt.where(ExamResult.student_id.in_(student_ids))
        return (await self.db.execute(stmt)).scalars().all()

    async def save_results(self, user: User, exam: Exam, subject_id: UUID, results: List[dict]) -> List[ExamResult]:
        """Upsert one score per student for (exam, subject)."""
        await SubjectService(self.db).get_in_school(subject_id, exam.school_id)
        await ensure_class_access(self.db, user, subject_id=subject_id)

        scores = {r["student_id"]: r["score"] for r in results}
        students = {s.id: s for s in await StudentService(self.db).get_by_ids(scores.keys())}
        for student_id, score in scores.items():
            student = students.get(student_id)
            if not student or student.school_id != exam.school_id:
                raise ValidationError(f"Student {student_id} not found in this school", field="results")
            if score < 0:
                raise ValidationError("Scores cannot be negative", field="results")

        stmt = select(ExamResult).where(
            ExamResult.exam_id == exam.id,
            ExamResult.subject_id == subject_id,
            ExamResult.student_id.in_(list(scores.keys())),
        )
        existing = {r.student_id: r for r in (await self.db.execute(stmt)).scalars().all()}

        saved = []
        for student_id, score in scores.items():
            result = existing.get(student_id)
            if result is None:
                result = ExamResult(exam_id=exam.id, subject_id=subject_id, student_id=student_id)
                self.db.add(result)
            result.score = score
            result.is_deleted = False
            saved.append(result)
        await self.db.commit()
        for result in saved:
            await self.db.refresh(result)
        return saved

    async def get_in_school(self, id, school_id) -> ExamResult:
        stmt = (
            select(ExamResult)
            .join(Exam, Exam.id == ExamResult.exam_id)
            .where(ExamResult.id == id, ExamResult.is_deleted == False)
        )
        if school_id is not None:
            stmt = stmt.where(Exam.school_id == school_id)
        result = (await self.db.execute(stmt)).scalar_one_or_none()
        if not result:
            raise NotFoundError(self.resource_name)
        return result

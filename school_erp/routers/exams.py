from typing import Any, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.user import User
from ..services.exam_service import ExamResultService, ExamService
from ..utils.formatting import iso

router = APIRouter(prefix="/api", tags=["Exams"])


class ExamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    term: Optional[str] = None
    year: Optional[int] = Field(None, ge=2000, le=2100)


class ExamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    term: Optional[str] = None
    year: Optional[int] = Field(None, ge=2000, le=2100)


class ExamPaperSave(BaseModel):
    subject_id: UUID
    questions: List[Any] = []
    duration_minutes: Optional[int] = Field(None, gt=0)
    total_marks: Optional[int] = Field(None, ge=0)
    instructions: Optional[str] = None
    status: str = "draft"


class ResultEntry(BaseModel):
    student_id: UUID
    score: float


class ResultsSave(BaseModel):
    exam_id: UUID
    subject_id: UUID
    results: List[ResultEntry] = Field(..., min_length=1)


def exam_to_dict(exam) -> dict:
    return {
        "id": str(exam.id),
        "name": exam.name,
        "term": exam.term,
        "year": exam.year,
        "created_at": iso(exam.created_at),
    }


def paper_to_dict(paper) -> dict:
    return {
        "id": str(paper.id),
        "exam_id": str(paper.exam_id),
        "subject_id": str(paper.subject_id),
        "questions": paper.questions or [],
        "duration_minutes": paper.duration_minutes,
        "total_marks": paper.total_marks,
        "instructions": paper.instructions,
        "status": paper.status,
    }


def result_to_dict(result) -> dict:
    return {
        "id": str(result.id),
        "exam_id": str(result.exam_id),
        "exam_name": result.exam.name if result.exam else None,
        "subject_id": str(result.subject_id),
        "subject_name": result.subject.name if result.subject else None,
        "student_id": str(result.student_id),
        "student_name": result.student.name if result.student else None,
        "score": result.score,
    }


@router.get("/exams")
async def list_exams(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return [exam_to_dict(e) for e in await ExamService(db).list_for_school(resolve_school_id(user))]


@router.post("/exams", status_code=201)
async def create_exam(
    payload: ExamCreate,
    user: User = Depends(require_permission(Permission.EXAM_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    exam = await ExamService(db).create({**payload.model_dump(), "school_id": resolve_school_id(user)})
    return exam_to_dict(exam)


@router.get("/exams/{exam_id}")
async def get_exam(
    exam_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return exam_to_dict(await ExamService(db).get_in_school(exam_id, resolve_school_id(user)))


@router.put("/exams/{exam_id}")
async def update_exam(
    exam_id: UUID,
    payload: ExamUpdate,
    user: User = Depends(require_permission(Permission.EXAM_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = ExamService(db)
    exam = await service.get_in_school(exam_id, resolve_school_id(user))
    return exam_to_dict(await service.update(exam, payload.model_dump(exclude_unset=True)))


@router.delete("/exams/{exam_id}")
async def delete_exam(
    exam_id: UUID,
    user: User = Depends(require_permission(Permission.EXAM_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Delete an exam and all of its results"""
    service = ExamService(db)
    exam = await service.get_in_school(exam_id, resolve_school_id(user))
    await service.delete_exam(exam)
    return {"message": "Exam deleted successfully"}


@router.get("/exams/{exam_id}/papers/{subject_id}")
async def get_exam_paper(
    exam_id: UUID,
    subject_id: UUID,
    user: User = Depends(require_permission(Permission.EXAM_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = ExamService(db)
    exam = await service.get_in_school(exam_id, resolve_school_id(user))
    return paper_to_dict(await service.get_paper(exam, subject_id))


@router.post("/exams/{exam_id}/papers")
async def save_exam_paper(
    exam_id: UUID,
    payload: ExamPaperSave,
    user: User = Depends(require_permission(Permission.EXAM_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Create or replace the paper for a subject"""
    service = ExamService(db)
    exam = await service.get_in_school(exam_id, resolve_school_id(user))
    paper = await service.save_paper(user, exam, payload.subject_id, payload.model_dump(exclude={"subject_id"}))
    return paper_to_dict(paper)


@router.get("/exam-results")
async def list_results(
    exam_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    user: User = Depends(require_permission(Permission.EXAM_MANAGE_RESULTS)),
    db: AsyncSession = Depends(get_db),
):
    results = await ExamResultService(db).list_results(
        resolve_school_id(user), exam_id=exam_id, class_id=class_id, subject_id=subject_id
    )
    return [result_to_dict(r) for r in results]


@router.post("/exam-results")
async def save_results(
    payload: ResultsSave,
    user: User = Depends(require_permission(Permission.EXAM_MANAGE_RESULTS)),
    db: AsyncSession = Depends(get_db),
):
    """Upsert scores for one subject of an exam"""
    exam = await ExamService(db).get_in_school(payload.exam_id, resolve_school_id(user))
    saved = await ExamResultService(db).save_results(
        user, exam, payload.subject_id, [r.model_dump() for r in payload.results]
    )
    return {"message": "Results saved successfully", "results": [result_to_dict(r) for r in saved]}


@router.delete("/exam-results/{result_id}")
async def delete_result(
    result_id: UUID,
    user: User = Depends(require_permission(Permission.EXAM_MANAGE_RESULTS)),
    db: AsyncSession = Depends(get_db),
):
    service = ExamResultService(db)
    result = await service.get_in_school(result_id, resolve_school_id(user))
    await service.hard_delete(result)
    return {"message": "Result deleted successfully"}

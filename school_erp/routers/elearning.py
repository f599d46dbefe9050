"""CRUD routes shared by the four e-learning content kinds."""
from datetime import datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import ValidationError
from ..core.permissions import Permission, require_permission, resolve_school_id
from ..models.learning import ContentKind
from ..models.user import User
from ..services.learning_service import LearningContentService
from ..utils.formatting import iso, sid


class ContentCreate(BaseModel):
    subject_id: UUID
    class_id: Optional[UUID] = None
    title: str = Field(..., min_length=1, max_length=200)
    content: Optional[str] = None
    attachment_url: Optional[str] = None
    due_date: Optional[datetime] = None


class ContentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None
    attachment_url: Optional[str] = None
    due_date: Optional[datetime] = None


def content_to_dict(item) -> dict:
    return {
        "id": str(item.id),
        "kind": item.kind.value,
        "subject_id": str(item.subject_id),
        "class_id": sid(item.class_id),
        "title": item.title,
        "content": item.content,
        "attachment_url": item.attachment_url,
        "due_date": iso(item.due_date),
        "created_by": sid(item.created_by),
        "created_at": iso(item.created_at),
    }


def build_content_router(kind: ContentKind) -> APIRouter:
    router = APIRouter(prefix=f"/api/{kind.value}", tags=["E-Learning"])
    label = kind.value.replace("-", " ")

    @router.get("")
    async def list_content(
        subject_id: Optional[UUID] = Query(None),
        class_id: Optional[UUID] = Query(None),
        user: User = Depends(require_permission(Permission.ELEARNING_VIEW)),
        db: AsyncSession = Depends(get_db),
    ):
        if subject_id is None:
            raise ValidationError("subject_id is required", field="subject_id")
        service = LearningContentService(db, kind)
        items = await service.list_for_subject(resolve_school_id(user), subject_id, class_id)
        return [content_to_dict(i) for i in items]

    @router.post("", status_code=201)
    async def create_content(
        payload: ContentCreate,
        user: User = Depends(require_permission(Permission.ELEARNING_MANAGE)),
        db: AsyncSession = Depends(get_db),
    ):
        service = LearningContentService(db, kind)
        item = await service.create_content(user, resolve_school_id(user), payload.model_dump())
        return content_to_dict(item)

    @router.put("/{item_id}")
    async def update_content(
        item_id: UUID,
        payload: ContentUpdate,
        user: User = Depends(require_permission(Permission.ELEARNING_MANAGE)),
        db: AsyncSession = Depends(get_db),
    ):
        service = LearningContentService(db, kind)
        item = await service.get_in_school(item_id, resolve_school_id(user))
        item = await service.update_content(user, item, payload.model_dump(exclude_unset=True))
        return content_to_dict(item)

    @router.delete("/{item_id}")
    async def delete_content(
        item_id: UUID,
        user: User = Depends(require_permission(Permission.ELEARNING_MANAGE)),
        db: AsyncSession = Depends(get_db),
    ):
        service = LearningContentService(db, kind)
        item = await service.get_in_school(item_id, resolve_school_id(user))
        await service.delete_content(user, item)
        return {"message": f"{label.capitalize()} deleted successfully"}

    return router


routers = [build_content_router(kind) for kind in ContentKind]

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.user import User
from ..services.notice_service import CertificateService, NewsletterService, NoticeService
from ..utils.formatting import iso

router = APIRouter(prefix="/api", tags=["Notices"])


class NoticeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    audience: str = Field("ALL", pattern="^(ALL|STUDENTS|PARENTS|TEACHERS|STAFF)$")


class NewsletterCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    cover_image: Optional[str] = None


class NewsletterUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    cover_image: Optional[str] = None


class CertificateCreate(BaseModel):
    student_id: UUID
    type: str = Field(..., min_length=1, max_length=50)
    metadata: Optional[dict] = None


def notice_to_dict(notice) -> dict:
    return {
        "id": str(notice.id),
        "title": notice.title,
        "content": notice.content,
        "audience": notice.audience,
        "author_id": str(notice.author_id) if notice.author_id else None,
        "created_at": iso(notice.created_at),
    }


def newsletter_to_dict(newsletter) -> dict:
    return {
        "id": str(newsletter.id),
        "title": newsletter.title,
        "content": newsletter.content,
        "cover_image": newsletter.cover_image,
        "published_at": iso(newsletter.published_at),
    }


def certificate_to_dict(certificate) -> dict:
    return {
        "id": str(certificate.id),
        "student_id": str(certificate.student_id),
        "student_name": certificate.student.name if certificate.student else None,
        "type": certificate.type,
        "reference_number": certificate.reference_number,
        "issued_at": iso(certificate.issued_at),
        "metadata": certificate.details or {},
    }


# Notices

@router.get("/notices")
async def list_notices(
    audience: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notices = await NoticeService(db).list_for_school(resolve_school_id(user), audience)
    return [notice_to_dict(n) for n in notices]


@router.post("/notices", status_code=201)
async def create_notice(
    payload: NoticeCreate,
    user: User = Depends(require_permission(Permission.NOTICE_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    notice = await NoticeService(db).create({
        **payload.model_dump(),
        "school_id": resolve_school_id(user),
        "author_id": user.id,
    })
    return notice_to_dict(notice)


@router.delete("/notices/{notice_id}")
async def delete_notice(
    notice_id: UUID,
    user: User = Depends(require_permission(Permission.NOTICE_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = NoticeService(db)
    notice = await service.get_in_school(notice_id, resolve_school_id(user))
    await service.soft_delete(notice)
    return {"message": "Notice deleted successfully"}


# Newsletters

@router.get("/newsletters")
async def list_newsletters(
    user: User = Depends(require_permission(Permission.NEWSLETTER_VIEW)),
    db: AsyncSession = Depends(get_db),
):
    newsletters = await NewsletterService(db).list_for_school(resolve_school_id(user))
    return [newsletter_to_dict(n) for n in newsletters]


@router.post("/newsletters", status_code=201)
async def create_newsletter(
    payload: NewsletterCreate,
    user: User = Depends(require_permission(Permission.NEWSLETTER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    newsletter = await NewsletterService(db).publish(resolve_school_id(user), user.id, payload.model_dump())
    return newsletter_to_dict(newsletter)


@router.put("/newsletters/{newsletter_id}")
async def update_newsletter(
    newsletter_id: UUID,
    payload: NewsletterUpdate,
    user: User = Depends(require_permission(Permission.NEWSLETTER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = NewsletterService(db)
    newsletter = await service.get_in_school(newsletter_id, resolve_school_id(user))
    newsletter = await service.update(newsletter, payload.model_dump(exclude_unset=True))
    return newsletter_to_dict(newsletter)


@router.delete("/newsletters/{newsletter_id}")
async def delete_newsletter(
    newsletter_id: UUID,
    user: User = Depends(require_permission(Permission.NEWSLETTER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = NewsletterService(db)
    newsletter = await service.get_in_school(newsletter_id, resolve_school_id(user))
    await service.soft_delete(newsletter)
    return {"message": "Newsletter deleted successfully"}


# Certificates

@router.get("/certificates")
async def list_certificates(
    user: User = Depends(require_permission(Permission.CERTIFICATE_VIEW)),
    db: AsyncSession = Depends(get_db),
):
    certificates = await CertificateService(db).list_visible(user, resolve_school_id(user))
    return [certificate_to_dict(c) for c in certificates]


@router.post("/certificates", status_code=201)
async def issue_certificate(
    payload: CertificateCreate,
    user: User = Depends(require_permission(Permission.CERTIFICATE_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    certificate = await CertificateService(db).issue(
        resolve_school_id(user), payload.student_id, payload.type, payload.metadata
    )
    return certificate_to_dict(certificate)

from datetime import datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.user import User
from ..services.library_service import LibraryService
from ..utils.formatting import iso

router = APIRouter(prefix="/api/books", tags=["Library"])


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    author: Optional[str] = None
    isbn: Optional[str] = Field(None, max_length=20)
    category: Optional[str] = None
    quantity: int = Field(1, ge=0)


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    author: Optional[str] = None
    isbn: Optional[str] = Field(None, max_length=20)
    category: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)


class BookIssueRequest(BaseModel):
    book_id: UUID
    student_id: UUID
    due_date: Optional[datetime] = None


class BookReturnRequest(BaseModel):
    issue_id: UUID


def book_to_dict(book) -> dict:
    return {
        "id": str(book.id),
        "title": book.title,
        "author": book.author,
        "isbn": book.isbn,
        "category": book.category,
        "quantity": book.quantity,
        "available": book.available,
    }


def issue_to_dict(issue) -> dict:
    return {
        "id": str(issue.id),
        "book_id": str(issue.book_id),
        "book_title": issue.book.title if issue.book else None,
        "student_id": str(issue.student_id),
        "student_name": issue.student.name if issue.student else None,
        "issue_date": iso(issue.issue_date),
        "due_date": iso(issue.due_date),
        "return_date": iso(issue.return_date),
        "status": issue.status.value,
    }


@router.get("")
async def list_books(
    search: Optional[str] = Query(None, description="Matches title, author or ISBN"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    books = await LibraryService(db).search(resolve_school_id(user), search)
    return [book_to_dict(b) for b in books]


@router.post("", status_code=201)
async def add_book(
    payload: BookCreate,
    user: User = Depends(require_permission(Permission.LIBRARY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    book = await LibraryService(db).add_book(resolve_school_id(user), payload.model_dump())
    return book_to_dict(book)


@router.get("/issued")
async def issued_books(
    user: User = Depends(require_permission(Permission.LIBRARY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Books currently out on loan"""
    return [issue_to_dict(i) for i in await LibraryService(db).issued_books(resolve_school_id(user))]


@router.post("/issue", status_code=201)
async def issue_book(
    payload: BookIssueRequest,
    user: User = Depends(require_permission(Permission.LIBRARY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    issue = await LibraryService(db).issue_book(
        resolve_school_id(user), payload.book_id, payload.student_id, payload.due_date
    )
    return issue_to_dict(issue)


@router.post("/return")
async def return_book(
    payload: BookReturnRequest,
    user: User = Depends(require_permission(Permission.LIBRARY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    issue = await LibraryService(db).return_book(resolve_school_id(user), payload.issue_id)
    return issue_to_dict(issue)


@router.put("/{book_id}")
async def update_book(
    book_id: UUID,
    payload: BookUpdate,
    user: User = Depends(require_permission(Permission.LIBRARY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = LibraryService(db)
    book = await service.get_in_school(book_id, resolve_school_id(user))
    book = await service.update_book(book, payload.model_dump(exclude_unset=True))
    return book_to_dict(book)


@router.delete("/{book_id}")
async def delete_book(
    book_id: UUID,
    user: User = Depends(require_permission(Permission.LIBRARY_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = LibraryService(db)
    book = await service.get_in_school(book_id, resolve_school_id(user))
    await service.soft_delete(book)
    return {"message": "Book deleted successfully"}

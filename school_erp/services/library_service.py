from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from .base_service import BaseService
from .people_service import StudentService
from ..core.exceptions import NotFoundError, ValidationError
from ..models.library import Book, BookIssue, IssueStatus


class LibraryService(BaseService[Book]):
    resource_name = "Book"

    def __init__(self, db: AsyncSession):
        super().__init__(Book, db)

    async def search(self, school_id: UUID, search: Optional[str] = None) -> List[Book]:
        stmt = select(Book).where(Book.school_id == school_id, Book.is_deleted == False)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(or_(
                func.lower(Book.title).like(pattern),
                func.lower(Book.author).like(pattern),
                func.lower(Book.isbn).like(pattern),
            ))
        result = await self.db.execute(stmt.order_by(Book.title))
        return result.scalars().all()

    async def add_book(self, school_id: UUID, data: dict) -> Book:
        quantity = data.get("quantity", 1)
        return await self.create({**data, "school_id": school_id, "quantity": quantity, "available": quantity})

    async def update_book(self, book: Book, data: dict) -> Book:
        """A quantity change moves ``available`` by the same amount."""
        if "quantity" in data and data["quantity"] is not None:
            new_available = book.available + (data["quantity"] - book.quantity)
            if new_available < 0:
                raise ValidationError(
                    "Quantity cannot be lower than the number of copies currently issued",
                    field="quantity",
                )
            data = {**data, "available": new_available}
        return await self.update(book, data)

    async def _lock_book(self, book_id: UUID, school_id: UUID) -> Book:
        stmt = (
            select(Book)
            .where(Book.id == book_id, Book.school_id == school_id, Book.is_deleted == False)
            .with_for_update()
        )
        book = (await self.db.execute(stmt)).scalar_one_or_none()
        if not book:
            raise NotFoundError("Book")
        return book

    async def issue_book(self, school_id: UUID, book_id: UUID, student_id: UUID, due_date: Optional[datetime]) -> BookIssue:
        book = await self._lock_book(book_id, school_id)
        if book.available < 1:
            raise ValidationError("Book not available", field="book_id")
        await StudentService(self.db).get_in_school(student_id, school_id)

        book.available -= 1
        issue = BookIssue(
            book_id=book.id,
            student_id=student_id,
            issue_date=datetime.now(timezone.utc),
            due_date=due_date,
            status=IssueStatus.ISSUED,
        )
        self.db.add(issue)
        await self.db.commit()
        await self.db.refresh(issue)
        return issue

    async def return_book(self, school_id: UUID, issue_id: UUID) -> BookIssue:
        stmt = (
            select(BookIssue)
            .join(Book, Book.id == BookIssue.book_id)
            .where(BookIssue.id == issue_id, Book.school_id == school_id)
        )
        issue = (await self.db.execute(stmt)).scalar_one_or_none()
        if not issue:
            raise NotFoundError("Issue record")
        if issue.status == IssueStatus.RETURNED:
            raise ValidationError("Book already returned", field="issue_id")

        book = await self._lock_book(issue.book_id, school_id)
        book.available += 1
        issue.status = IssueStatus.RETURNED
        issue.return_date = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(issue)
        return issue

    async def issued_books(self, school_id: UUID) -> List[BookIssue]:
        stmt = (
            select(BookIssue)
            .join(Book, Book.id == BookIssue.book_id)
            .where(Book.school_id == school_id, BookIssue.status == IssueStatus.ISSUED)
            .order_by(BookIssue.issue_date.desc())
        )
        return (await self.db.execute(stmt)).scalars().all()

from datetime import date
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from .academic_service import get_student_profile
from .people_service import StudentService
from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationError
from ..models.finance import Payment, PaymentMethod
from ..models.people import Student
from ..models.user import User

METHOD_LABELS = {
    "cash": PaymentMethod.CASH,
    "mobile money": PaymentMethod.MOBILE_MONEY,
    "mobile_money": PaymentMethod.MOBILE_MONEY,
    "bank transfer": PaymentMethod.BANK,
    "bank": PaymentMethod.BANK,
}


def normalize_method(label: Optional[str]) -> PaymentMethod:
    if not label:
        return PaymentMethod.CASH
    method = METHOD_LABELS.get(label.strip().lower())
    if method is None:
        raise ValidationError(f"Unknown payment method: {label}", field="method")
    return method


def term_for(day: date) -> int:
    """School term of a date: Jan-Apr is 1, May-Aug is 2, Sep-Dec is 3."""
    if day.month <= 4:
        return 1
    if day.month <= 8:
        return 2
    return 3


def payment_status(total_paid: float, fee_amount: float) -> str:
    if total_paid >= fee_amount:
        return "Paid"
    if total_paid > 0:
        return "Partial"
    return "Not Paid"


class FinanceService(BaseService[Payment]):
    resource_name = "Payment"

    def __init__(self, db: AsyncSession):
        super().__init__(Payment, db)

    async def payments_by_student(self, student_ids: List[UUID]) -> Dict[UUID, List[Payment]]:
        grouped: Dict[UUID, List[Payment]] = {sid: [] for sid in student_ids}
        if not student_ids:
            return grouped
        stmt = (
            select(Payment)
            .where(Payment.student_id.in_(student_ids), Payment.is_deleted == False)
            .order_by(Payment.paid_on.desc(), Payment.created_at.desc())
        )
        for payment in (await self.db.execute(stmt)).scalars().all():
            grouped[payment.student_id].append(payment)
        return grouped

    def fee_summary(self, payments: List[Payment], fee_amount: Optional[float] = None) -> dict:
        fee_amount = settings.fee_amount if fee_amount is None else fee_amount
        total = round(sum(p.amount for p in payments), 2)
        return {
            "fee_amount": fee_amount,
            "total_paid": total,
            "balance": round(max(fee_amount - total, 0), 2),
            "status": payment_status(total, fee_amount),
        }

    async def overview(
        self,
        school_id: UUID,
        class_id: Optional[UUID] = None,
        search: Optional[str] = None,
    ) -> List[dict]:
        students = await StudentService(self.db).list_for_school(school_id, class_id)
        if search:
            needle = search.lower()
            students = [
                s for s in students
                if needle in s.name.lower() or needle in (s.admission_number or "").lower()
            ]
        payments = await self.payments_by_student([s.id for s in students])
        return [
            {"student": s, "payments": payments[s.id], **self.fee_summary(payments[s.id])}
            for s in sorted(students, key=lambda s: s.name)
        ]

    async def record_payment(self, school_id: UUID, user: User, data: dict) -> Payment:
        await StudentService(self.db).get_in_school(data["student_id"], school_id)
        if data["amount"] <= 0:
            raise ValidationError("Amount must be greater than zero", field="amount")
        return await self.create({
            "school_id": school_id,
            "student_id": data["student_id"],
            "amount": data["amount"],
            "method": normalize_method(data.get("method")),
            "paid_on": data.get("date") or date.today(),
            "reference": data.get("reference"),
            "recorded_by": user.id,
        })

    async def stats(self, school_id: UUID, year: Optional[int] = None, term: Optional[int] = None) -> dict:
        student_count = len(await StudentService(self.db).list_for_school(school_id))
        stmt = select(Payment).where(Payment.school_id == school_id, Payment.is_deleted == False)
        payments = (await self.db.execute(stmt)).scalars().all()
        if year is not None:
            payments = [p for p in payments if p.paid_on.year == year]
        if term is not None:
            payments = [p for p in payments if term_for(p.paid_on) == term]

        total_due = round(student_count * settings.fee_amount, 2)
        total_paid = round(sum(p.amount for p in payments), 2)
        return {
            "students": student_count,
            "total_due": total_due,
            "total_paid": total_paid,
            "balance": round(total_due - total_paid, 2),
            "year": year,
            "term": term,
        }

    async def payments_for_student(self, student: Student) -> List[Payment]:
        return (await self.payments_by_student([student.id]))[student.id]

    async def my_payments(self, user: User) -> List[Payment]:
        student = await get_student_profile(self.db, user)
        if not student:
            raise NotFoundError("Student profile")
        return await self.payments_for_student(student)

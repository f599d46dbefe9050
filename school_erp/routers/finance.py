import datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.finance import PaymentMethod
from ..models.user import User
from ..services.finance_service import FinanceService
from ..utils.formatting import iso

router = APIRouter(prefix="/api", tags=["Finance"])

METHOD_DISPLAY = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.MOBILE_MONEY: "Mobile Money",
    PaymentMethod.BANK: "Bank Transfer",
}


class PaymentCreate(BaseModel):
    student_id: UUID
    amount: float = Field(..., gt=0)
    method: Optional[str] = "Cash"
    date: Optional[datetime.date] = None
    reference: Optional[str] = Field(None, max_length=100)


def payment_to_dict(payment) -> dict:
    return {
        "id": str(payment.id),
        "student_id": str(payment.student_id),
        "amount": payment.amount,
        "method": METHOD_DISPLAY[payment.method],
        "date": iso(payment.paid_on),
        "reference": payment.reference,
        "synced_to_tally": payment.synced_to_tally,
    }


@router.get("/finance/students")
async def finance_students(
    class_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None),
    user: User = Depends(require_permission(Permission.FINANCE_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Students with their payments, total paid and fee status"""
    rows = await FinanceService(db).overview(resolve_school_id(user), class_id, search)
    return [
        {
            "id": str(row["student"].id),
            "name": row["student"].name,
            "admission_number": row["student"].admission_number,
            "class_name": row["student"].school_class.name if row["student"].school_class else None,
            "payments": [payment_to_dict(p) for p in row["payments"]],
            "fee_amount": row["fee_amount"],
            "total_paid": row["total_paid"],
            "balance": row["balance"],
            "status": row["status"],
        }
        for row in rows
    ]


@router.post("/finance/payments", status_code=201)
async def record_payment(
    payload: PaymentCreate,
    user: User = Depends(require_permission(Permission.FINANCE_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    payment = await FinanceService(db).record_payment(resolve_school_id(user), user, payload.model_dump())
    return payment_to_dict(payment)


@router.delete("/finance/payments/{payment_id}")
async def delete_payment(
    payment_id: UUID,
    user: User = Depends(require_permission(Permission.FINANCE_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = FinanceService(db)
    payment = await service.get_in_school(payment_id, resolve_school_id(user))
    await service.soft_delete(payment)
    return {"message": "Payment deleted successfully"}


@router.get("/finance/stats")
async def finance_stats(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    term: Optional[int] = Query(None, ge=1, le=3),
    user: User = Depends(require_permission(Permission.FINANCE_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    return await FinanceService(db).stats(resolve_school_id(user), year, term)


@router.get("/my/payments")
async def my_payments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = FinanceService(db)
    payments = await service.my_payments(user)
    return {**service.fee_summary(payments), "payments": [payment_to_dict(p) for p in payments]}

import logging
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from .finance_service import FinanceService
from .people_service import StudentService
from ..core.config import settings
from ..models.people import Student
from ..utils.tally import TallyClient

logger = logging.getLogger(__name__)


def student_ledger_name(student: Student) -> str:
    if student.admission_number:
        return f"{student.name} ({student.admission_number})"
    return student.name


class TallyService:
    def __init__(self, db: AsyncSession, client: TallyClient):
        self.db = db
        self.client = client

    async def push_payment(self, school_id: UUID, payment_id: UUID, company: Optional[str] = None) -> dict:
        """Post a recorded fee payment to Tally as a sales voucher."""
        finance = FinanceService(self.db)
        payment = await finance.get_in_school(payment_id, school_id)
        student = await StudentService(self.db).get_in_school(payment.student_id, school_id)

        voucher = {
            "company": company,
            "date": payment.paid_on.isoformat(),
            "party": student_ledger_name(student),
            "ledger": settings.tally_sales_ledger,
            "amount": payment.amount,
            "narration": f"School fees - {payment.method.value}",
            "reference": payment.reference or str(payment.id),
        }
        response = await self.client.create_sales_voucher(voucher)
        payment.synced_to_tally = True
        await self.db.commit()
        logger.info(f"Payment {payment.id} pushed to Tally")
        return {"voucher": voucher, "response": response}

    async def auto_ledger(self, school_id: UUID, company: Optional[str] = None) -> dict:
        """Create a party ledger for every student that Tally does not know yet."""
        existing = {
            (ledger["name"] or "").strip().lower()
            for ledger in await self.client.ledgers(company)
        }
        created = []
        skipped = 0
        for student in await StudentService(self.db).list_for_school(school_id):
            name = student_ledger_name(student)
            if name.lower() in existing:
                skipped += 1
                continue
            await self.client.create_ledger(name, settings.tally_party_group, company)
            existing.add(name.lower())
            created.append(name)
        logger.info(f"Tally auto-ledger for school {school_id}: {len(created)} created, {skipped} existing")
        return {"created": created, "skipped": skipped}

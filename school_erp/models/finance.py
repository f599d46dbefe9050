from sqlalchemy import Column, String, Numeric, Date, Boolean, ForeignKey, Uuid, CheckConstraint
from .base import Base, enum_column
import enum


class PaymentMethod(enum.Enum):
    CASH = "cash"
    MOBILE_MONEY = "mobile_money"
    BANK = "bank"


class Payment(Base):
    __tablename__ = "payments"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    method = Column(enum_column(PaymentMethod), default=PaymentMethod.CASH, nullable=False)
    paid_on = Column(Date, nullable=False, index=True)
    reference = Column(String(100))
    recorded_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    synced_to_tally = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        CheckConstraint('amount > 0', name='check_amount_positive'),
    )

from sqlalchemy import Column, String, Integer, Text, ForeignKey, Uuid, CheckConstraint
from .base import Base, enum_column
import enum


class TransactionType(enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100))
    quantity = Column(Integer, default=0, nullable=False)
    unit = Column(String(20), default="pcs")
    min_quantity = Column(Integer, default=0, nullable=False)
    location = Column(String(200))

    __table_args__ = (
        CheckConstraint('quantity >= 0', name='check_quantity_non_negative'),
    )


class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"

    item_id = Column(Uuid(as_uuid=True), ForeignKey("inventory_items.id"), nullable=False, index=True)
    type = Column(enum_column(TransactionType), nullable=False)
    quantity = Column(Integer, nullable=False)
    notes = Column(Text)
    performed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

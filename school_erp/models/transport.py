from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid
from .base import Base


class Bus(Base):
    __tablename__ = "buses"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    number_plate = Column(String(20), nullable=False)
    route_name = Column(String(200))
    driver_name = Column(String(200))
    driver_phone = Column(String(20))
    pickup_time = Column(String(10))  # HH:MM
    arrival_time = Column(String(10))
    has_started = Column(Boolean, default=False, nullable=False)
    has_arrived = Column(Boolean, default=False, nullable=False)

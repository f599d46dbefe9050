"""School (tenant) model definition."""
from sqlalchemy import Column, String, Integer, Float, Boolean, CheckConstraint
from sqlalchemy.orm import validates
from .base import Base


class School(Base):
    __tablename__ = "schools"

    name = Column(String(200), nullable=False, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    address = Column(String(500))
    email = Column(String(254))
    phone = Column(String(20))
    website = Column(String(254))
    logo = Column(String(500))
    is_active = Column(Boolean, default=True, nullable=False)

    # Geofence for attendance marking
    latitude = Column(Float)
    longitude = Column(Float)
    radius_meters = Column(Integer)

    __table_args__ = (
        CheckConstraint('radius_meters IS NULL OR radius_meters > 0', name='check_radius_positive'),
    )

    @validates('latitude')
    def validate_latitude(self, key, value):
        if value is not None and not -90 <= value <= 90:
            raise ValueError("latitude must be between -90 and 90")
        return value

    @validates('longitude')
    def validate_longitude(self, key, value):
        if value is not None and not -180 <= value <= 180:
            raise ValueError("longitude must be between -180 and 180")
        return value

    @property
    def has_geofence(self) -> bool:
        return (
            self.latitude is not None
            and self.longitude is not None
            and bool(self.radius_meters)
        )

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


class SchoolBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200, description="School name")
    address: Optional[str] = Field(None, max_length=500)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    website: Optional[str] = None
    logo: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_meters: Optional[int] = Field(None, gt=0, description="Attendance geofence radius")

    @model_validator(mode='after')
    def validate_geofence(self):
        """Latitude and longitude come as a pair"""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class SchoolCreate(SchoolBase):
    code: str = Field(..., min_length=2, max_length=20, description="Unique school code")

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        if not v.replace("-", "").replace("_", "").isalnum():
            raise ValueError("code may only contain letters, digits, '-' and '_'")
        return v.upper()


class SchoolUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    address: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_meters: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None

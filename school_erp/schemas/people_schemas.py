from datetime import date
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


class AccountBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Optional[str] = Field(None, max_length=20)
    school_id: Optional[UUID] = Field(None, description="Super admin only")


class StudentCreate(AccountBase):
    class_id: Optional[UUID] = None
    admission_number: Optional[str] = Field(None, max_length=50)
    grade: Optional[str] = None
    section: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None


class StudentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    class_id: Optional[UUID] = None
    admission_number: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None


class TeacherCreate(AccountBase):
    qualification: Optional[str] = None
    specialization: Optional[str] = None


class ParentCreate(AccountBase):
    occupation: Optional[str] = None
    student_ids: List[UUID] = []


class ParentLink(BaseModel):
    student_id: UUID
    relationship_type: str = Field("guardian", max_length=30)
    is_primary: bool = False

from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    phone: Optional[str] = Field(None, max_length=20)
    old_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=6, description="Requires old_password")

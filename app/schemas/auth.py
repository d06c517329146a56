from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.schemas.common import RequestModel


class TokenRequest(BaseModel):
    user_id: str
    company_id: int
    role: Optional[str] = None
    email: Optional[str] = None


class RegisterRequest(RequestModel):
    company_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    company_email: Optional[EmailStr] = None
    company_phone: Optional[str] = Field(default=None, max_length=50)
    company_address: Optional[str] = None


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(min_length=1)


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime


class AuthUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    is_active: bool


class AuthResponse(BaseModel):
    token: str
    user: AuthUser
    company: Optional[CompanyResponse] = None

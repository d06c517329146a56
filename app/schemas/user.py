from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.enums import UserRole
from app.schemas.common import RequestModel


class UserCreate(RequestModel):
    email: EmailStr
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0)
    role: UserRole = UserRole.WORKER
    is_active: bool = True


class UserUpdate(RequestModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    hourly_rate: Optional[Decimal] = None
    role: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserCreatedResponse(UserResponse):
    temporary_password: Optional[str] = None

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import SiteStatus
from app.schemas.common import RequestModel


class SiteCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    address: Optional[str] = None
    latitude: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(default=None, ge=-180, le=180)
    radius: int = Field(default=100, ge=1)
    status: SiteStatus = SiteStatus.PLANNING


class SiteUpdate(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = None
    latitude: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(default=None, ge=-180, le=180)
    radius: Optional[int] = Field(default=None, ge=1)
    status: Optional[SiteStatus] = None


class SiteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    name: str
    address: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    radius: int
    status: str
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class StatusStatistics(BaseModel):
    total: int
    by_status: Dict[str, int]

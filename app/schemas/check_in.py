from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import RequestModel


class CheckInRequest(RequestModel):
    job_id: int
    notes: Optional[str] = Field(default=None, max_length=1000)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0)


class CheckOutRequest(RequestModel):
    notes: Optional[str] = Field(default=None, max_length=1000)


class CheckInResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    job_id: int
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    duration_hours: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    billable_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    job_name: Optional[str] = None
    job_number: Optional[str] = None
    worker_name: Optional[str] = None
    site_address: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BillablesResponse(BaseModel):
    user_id: int
    start_date: datetime
    end_date: datetime
    entries: int
    total_hours: Decimal
    total_amount: Decimal

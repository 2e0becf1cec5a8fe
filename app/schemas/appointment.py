from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid

from app.models.enums import AppointmentStatus
from app.schemas.base import UTCDateTime
from app.schemas.call_log import CallLogSummary
from app.schemas.campaign import CampaignSummary
from app.schemas.contact import ContactSummary

class AppointmentCreate(BaseModel):
    campaign_id: uuid.UUID
    contact_id: uuid.UUID
    call_log_id: Optional[uuid.UUID] = None
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    appointment_time: UTCDateTime
    status: Optional[AppointmentStatus] = None

class AppointmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    appointment_time: Optional[UTCDateTime] = None
    status: Optional[AppointmentStatus] = None

class AppointmentRead(BaseModel):
    id: uuid.UUID
    campaign_id: uuid.UUID
    contact_id: uuid.UUID
    call_log_id: Optional[uuid.UUID] = None
    title: str
    description: Optional[str] = None
    appointment_time: datetime
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
    campaign: Optional[CampaignSummary] = None
    contact: Optional[ContactSummary] = None
    call_log: Optional[CallLogSummary] = None

    class Config:
        from_attributes = True

class CalendarAppointment(BaseModel):
    id: uuid.UUID
    title: str
    description: str = ""
    start: datetime
    end: datetime
    status: AppointmentStatus
    contact: Optional[ContactSummary] = None

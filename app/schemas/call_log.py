from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import uuid

from app.models.enums import AppointmentStatus
from app.schemas.base import UTCDateTime
from app.schemas.campaign import CampaignSummary
from app.schemas.contact import ContactSummary

class CallLogCreate(BaseModel):
    campaign_id: uuid.UUID
    contact_id: uuid.UUID
    call_sid: str
    status: str
    duration: Optional[int] = None
    recording_url: Optional[str] = None
    transcript_id: Optional[str] = None
    started_at: Optional[UTCDateTime] = None
    ended_at: Optional[UTCDateTime] = None

class CallLogUpdate(BaseModel):
    status: Optional[str] = None
    duration: Optional[int] = None
    recording_url: Optional[str] = None
    transcript_id: Optional[str] = None
    started_at: Optional[UTCDateTime] = None
    ended_at: Optional[UTCDateTime] = None

class AppointmentSummary(BaseModel):
    id: uuid.UUID
    title: str
    appointment_time: datetime
    status: AppointmentStatus

    class Config:
        from_attributes = True

class CallLogRead(BaseModel):
    id: uuid.UUID
    campaign_id: uuid.UUID
    contact_id: uuid.UUID
    call_sid: str
    status: str
    duration: Optional[int] = None
    recording_url: Optional[str] = None
    transcript_id: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: datetime
    campaign: Optional[CampaignSummary] = None
    contact: Optional[ContactSummary] = None
    appointment: Optional[AppointmentSummary] = None

    class Config:
        from_attributes = True

class CallLogSummary(BaseModel):
    id: uuid.UUID
    call_sid: str
    status: str
    duration: Optional[int] = None
    recording_url: Optional[str] = None
    started_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class StartCallRequest(BaseModel):
    to_number: Optional[str] = None

class ForwardCallRequest(BaseModel):
    to_number: Optional[str] = None
    system_message: Optional[str] = None
    initial_message: Optional[str] = None

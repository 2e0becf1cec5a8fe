from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
import uuid

from app.models.enums import CampaignStatus, ContactStatus
from app.schemas.auth import UserSummary
from app.schemas.base import UTCDateTime

class CampaignBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    settings: Optional[dict] = None

class CampaignCreate(CampaignBase):
    status: Optional[CampaignStatus] = None

class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    status: Optional[CampaignStatus] = None
    settings: Optional[dict] = None

class CampaignSettings(BaseModel):
    system_message: Optional[str] = None
    initial_message: Optional[str] = None

    class Config:
        from_attributes = True

class CampaignMembership(BaseModel):
    contact_id: uuid.UUID
    status: ContactStatus
    last_called: Optional[datetime] = None
    call_attempts: int = 0

    class Config:
        from_attributes = True

class CampaignRead(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: CampaignStatus
    settings: dict = {}
    admin_id: uuid.UUID
    admin: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime
    contact_count: int = 0
    active_contact_count: int = 0

    class Config:
        from_attributes = True

class CampaignDetail(CampaignRead):
    contacts: List[CampaignMembership] = []

class CampaignSummary(BaseModel):
    id: uuid.UUID
    name: str

    class Config:
        from_attributes = True

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
import uuid

from app.schemas.base import Pagination
from app.schemas.campaign import CampaignMembership

class ContactBase(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    tags: List[str] = []
    custom_fields: dict = {}

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("phone", "name")
    @classmethod
    def strip_value(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

class ContactCreate(ContactBase):
    pass

class ContactUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    tags: Optional[List[str]] = None
    custom_fields: Optional[dict] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

class ContactRead(BaseModel):
    id: uuid.UUID
    name: str
    phone: str
    email: Optional[str] = None
    tags: List[str] = []
    custom_fields: dict = {}
    admin_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ContactSummary(BaseModel):
    id: uuid.UUID
    name: str
    phone: str
    email: Optional[str] = None

    class Config:
        from_attributes = True

class ContactPage(BaseModel):
    contacts: List[ContactRead]
    pagination: Pagination

class CampaignContactRead(ContactRead):
    membership: CampaignMembership

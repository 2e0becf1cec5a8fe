from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
import uuid

from app.models.enums import UserRole, UserStatus
from app.schemas.permissions import Permissions

class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=8)
    permissions: Permissions

class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    permissions: Optional[Permissions] = None

class EmployeeUser(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: str
    role: UserRole
    status: UserStatus
    created_at: datetime

    class Config:
        from_attributes = True

class EmployeeRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    admin_id: uuid.UUID
    permissions: dict
    created_at: datetime
    user: EmployeeUser

    class Config:
        from_attributes = True

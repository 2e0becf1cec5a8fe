from fastapi_users import schemas
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
import uuid
from datetime import datetime

from app.models.enums import UserRole, UserStatus

class UserRead(schemas.BaseUser[uuid.UUID]):
    name: Optional[str] = None
    username: str
    role: UserRole
    status: UserStatus
    created_at: Optional[datetime] = None

class UserCreate(schemas.BaseUserCreate):
    name: Optional[str] = None
    username: str
    role: UserRole = UserRole.ADMIN
    status: UserStatus = UserStatus.ACTIVE

class UserUpdate(schemas.BaseUserUpdate):
    name: Optional[str] = None
    status: Optional[UserStatus] = None

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8)

class VerifySignupRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)

class UserSummary(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: str
    username: Optional[str] = None

    class Config:
        from_attributes = True

from fastapi import APIRouter, HTTPException, Depends
from fastapi_users import exceptions as fau_exceptions
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List
import logging
import uuid
from pydantic import BaseModel

from app.core.database import get_db
from app.core.permissions import Actor, require_super_admin
from app.models import User, UserRole, UserStatus
from app.schemas.auth import UserRead, UserUpdate
from app.utils.auth import get_user_manager

logger = logging.getLogger(__name__)

router = APIRouter()

class UserStatusUpdate(BaseModel):
    is_active: bool

@router.get("/all", response_model=List[UserRead])
async def get_all_users(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_super_admin)
):
    """
    Get all users. Requires super admin privileges.
    """
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    users = result.scalars().unique().all()
    return [UserRead.model_validate(user) for user in users]

@router.get("/stats")
async def get_users_stats(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_super_admin)
):
    """
    Get numbers of total users, active users and users per role.
    """
    total_result = await db.execute(select(func.count(User.id)))
    total_users = total_result.scalar() or 0

    active_result = await db.execute(select(func.count(User.id)).where(User.is_active == True))
    active_users = active_result.scalar() or 0

    role_result = await db.execute(select(User.role, func.count(User.id)).group_by(User.role))
    by_role = {role.value: 0 for role in UserRole}
    for role, count in role_result.all():
        by_role[role.value] = count

    return {
        "total_users": total_users,
        "active_users": active_users,
        "users_by_role": by_role,
    }

@router.patch("/{user_id}/status", response_model=UserRead)
async def update_user_status(
    user_id: str,
    status_update: UserStatusUpdate,
    actor: Actor = Depends(require_super_admin),
    user_manager = Depends(get_user_manager)
):
    """
    Activate or deactivate a user. ``status`` follows ``is_active``.
    """
    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid user ID format")

    try:
        user = await user_manager.get(user_uuid)
    except fau_exceptions.UserNotExists:
        raise HTTPException(status_code=404, detail="User not found")

    user_update = UserUpdate(
        is_active=status_update.is_active,
        status=UserStatus.ACTIVE if status_update.is_active else UserStatus.INACTIVE,
    )
    updated_user = await user_manager.update(user_update=user_update, user=user, safe=False)
    logger.info(f"User {user.id} set active={status_update.is_active} by {actor.id}")
    return UserRead.model_validate(updated_user)

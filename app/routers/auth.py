from fastapi import APIRouter, Depends, HTTPException
from fastapi_users import InvalidPasswordException
from fastapi_users import exceptions as fau_exceptions
from sqlalchemy.exc import IntegrityError
import logging

from app.core.permissions import Actor, get_current_actor
from app.models import User, UserRole, UserStatus
from app.schemas.auth import RegisterRequest, UserCreate, UserRead, VerifySignupRequest
from app.services.email_queue import EmailQueueItem, email_queue
from app.services.verification import (
    generate_otp,
    get_pending_user,
    remove_pending_user,
    store_otp,
    store_pending_user,
    verify_otp,
)
from app.utils.auth import UserManager, auth_backend, fastapi_users, get_user_manager

logger = logging.getLogger(__name__)

router = APIRouter()

router.include_router(
    fastapi_users.get_auth_router(auth_backend), prefix="/jwt", tags=["auth"]
)

async def ensure_email_and_username_available(user_manager: UserManager, email: str, username: str):
    try:
        await user_manager.get_by_email(email)
        taken = True
    except fau_exceptions.UserNotExists:
        taken = await user_manager.user_db.get_by_username(username) is not None
    if taken:
        raise HTTPException(status_code=400, detail="User with this email or username already exists")

async def create_admin(user_manager: UserManager, data: dict) -> User:
    """Create a verified tenant admin; AdminSettings are added by the manager hook."""
    try:
        return await user_manager.create(
            UserCreate(
                email=data["email"],
                password=data["password"],
                name=data["name"],
                username=data["username"],
                role=UserRole.ADMIN,
                status=UserStatus.ACTIVE,
                is_verified=True,
            ),
            safe=False,
        )
    except fau_exceptions.UserAlreadyExists:
        raise HTTPException(status_code=400, detail="User with this email or username already exists")
    except IntegrityError:
        # Lost a race on the unique email or username index
        await user_manager.user_db.session.rollback()
        raise HTTPException(status_code=400, detail="User with this email or username already exists")
    except InvalidPasswordException as e:
        raise HTTPException(status_code=400, detail=e.reason)

@router.post("/register", status_code=201)
async def register(request: RegisterRequest, user_manager: UserManager = Depends(get_user_manager)):
    """Create an admin account directly, without email verification."""
    await ensure_email_and_username_available(user_manager, request.email, request.username)
    user = await create_admin(user_manager, request.model_dump())
    return {"user": UserRead.model_validate(user)}

@router.post("/signup")
async def signup(request: RegisterRequest, user_manager: UserManager = Depends(get_user_manager)):
    """Start a signup: hold the registration and email a one-time code."""
    await ensure_email_and_username_available(user_manager, request.email, request.username)

    otp = generate_otp()
    store_otp(request.email, otp)
    store_pending_user(request.model_dump())
    await email_queue.add_to_queue(EmailQueueItem(to=request.email, otp=otp, type="verification"))
    logger.info(f"Verification code queued for {request.email}")

    return {
        "message": "Verification code sent",
        "queue_length": email_queue.get_queue_length(),
    }

@router.put("/signup")
async def verify_signup(request: VerifySignupRequest, user_manager: UserManager = Depends(get_user_manager)):
    """Finish a signup with the emailed code and create the admin account."""
    if not verify_otp(request.email, request.otp):
        raise HTTPException(status_code=400, detail="Invalid or expired verification code")

    user_data = get_pending_user(request.email)
    if not user_data:
        raise HTTPException(status_code=400, detail="Registration session expired")

    try:
        await ensure_email_and_username_available(user_manager, user_data["email"], user_data["username"])
    except HTTPException:
        remove_pending_user(request.email)
        raise
    user = await create_admin(user_manager, user_data)
    remove_pending_user(request.email)

    return {
        "message": "Email verified successfully",
        "user": UserRead.model_validate(user),
    }

@router.get("/me")
async def get_me(actor: Actor = Depends(get_current_actor)):
    return {
        "user": UserRead.model_validate(actor.user),
        "employee_id": actor.employee.id if actor.employee else None,
        "admin_id": actor.tenant_id,
        "permissions": actor.permissions.to_json(),
    }

from fastapi import APIRouter, HTTPException, Depends, Response
from fastapi_users import InvalidPasswordException
from fastapi_users import exceptions as fau_exceptions
from sqlalchemy import delete, select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging
import uuid

from app.core.database import get_db
from app.core.permissions import Actor, get_current_actor
from app.models import CampaignEmployee, Employee, User, UserRole, UserStatus
from app.schemas.auth import UserCreate
from app.schemas.employee import EmployeeCreate, EmployeeRead, EmployeeUpdate
from app.utils.auth import UserManager, get_user_manager

logger = logging.getLogger(__name__)

router = APIRouter()

def ensure_admin(actor: Actor, action: str):
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail=f"Only admins can {action}")

async def email_taken(db: AsyncSession, email: str, exclude_user_id: uuid.UUID = None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await db.execute(stmt)
    return result.first() is not None

async def username_taken(db: AsyncSession, username: str, exclude_user_id: uuid.UUID = None) -> bool:
    stmt = select(User.id).where(User.username == username)
    if exclude_user_id:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await db.execute(stmt)
    return result.first() is not None

async def get_owned_employee(db: AsyncSession, employee_id: uuid.UUID, actor: Actor) -> Employee:
    result = await db.execute(select(Employee).where(Employee.id == employee_id))
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    if employee.admin_id != actor.id:
        raise HTTPException(status_code=403, detail="You can only manage your own employees")
    return employee

@router.get("/employees", response_model=List[EmployeeRead])
async def get_employees(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    ensure_admin(actor, "view employees")
    result = await db.execute(
        select(Employee).where(Employee.admin_id == actor.id).order_by(Employee.created_at.desc())
    )
    return result.scalars().all()

@router.post("/employees", response_model=EmployeeRead, status_code=201)
async def create_employee(
    request: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    user_manager: UserManager = Depends(get_user_manager)
):
    """Create an employee login and its profile inside the admin's tenant."""
    ensure_admin(actor, "create employees")
    if await email_taken(db, request.email) or await username_taken(db, request.email):
        raise HTTPException(status_code=400, detail="User with this email already exists")

    try:
        user = await user_manager.create(
            UserCreate(
                email=request.email,
                password=request.password,
                name=request.name,
                username=request.email,
                role=UserRole.EMPLOYEE,
                status=UserStatus.ACTIVE,
                is_verified=True,
            ),
            safe=False,
        )
    except fau_exceptions.UserAlreadyExists:
        raise HTTPException(status_code=400, detail="User with this email already exists")
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="User with this email already exists")
    except InvalidPasswordException as e:
        raise HTTPException(status_code=400, detail=e.reason)

    employee = Employee(user_id=user.id, admin_id=actor.id, permissions=request.permissions.to_json())
    db.add(employee)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.error(f"Failed to create employee profile for user {user.id}", exc_info=True)
        raise

    logger.info(f"Admin {actor.id} created employee {employee.id}")
    result = await db.execute(select(Employee).where(Employee.id == employee.id).execution_options(populate_existing=True))
    return result.scalar_one()

@router.patch("/employees/{employee_id}", response_model=EmployeeRead)
async def update_employee(
    employee_id: uuid.UUID,
    request: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    ensure_admin(actor, "update employees")
    employee = await get_owned_employee(db, employee_id, actor)
    user = employee.user

    if request.email and request.email.lower() != user.email.lower():
        if await email_taken(db, request.email, exclude_user_id=user.id):
            raise HTTPException(status_code=400, detail="Email is already in use")
        if user.username == user.email:
            if await username_taken(db, request.email, exclude_user_id=user.id):
                raise HTTPException(status_code=400, detail="Email is already in use")
            user.username = request.email
        user.email = request.email
    if request.name is not None:
        user.name = request.name
    if request.permissions is not None:
        employee.permissions = request.permissions.to_json()

    await db.commit()
    result = await db.execute(select(Employee).where(Employee.id == employee.id).execution_options(populate_existing=True))
    return result.scalar_one()

@router.delete("/employees/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    ensure_admin(actor, "delete employees")
    employee = await get_owned_employee(db, employee_id, actor)
    user_id = employee.user_id

    await db.execute(delete(CampaignEmployee).where(CampaignEmployee.employee_id == employee.id))
    await db.execute(delete(Employee).where(Employee.id == employee.id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()

    logger.info(f"Admin {actor.id} deleted employee {employee_id}")
    return Response(status_code=204)

"""Authorization for admins and employees.

Admins (and super admins) own a tenant: every campaign, contact and employee
they create. Employees act inside their admin's tenant, limited by the flags in
their permission document and, for campaigns, by explicit assignment.
"""
from dataclasses import dataclass
from typing import Optional
import logging
import uuid

from fastapi import Depends, HTTPException
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models import Campaign, CampaignContact, CampaignEmployee, Contact, Employee, User, UserRole
from app.schemas.permissions import AccessType, Permissions, admin_permissions, no_permissions
from app.utils.auth import current_active_user

logger = logging.getLogger(__name__)

def effective_permissions(user: User, employee: Optional[Employee]) -> Permissions:
    if user.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN):
        return admin_permissions()
    if employee is None or not employee.permissions:
        return no_permissions()
    return Permissions.model_validate(employee.permissions)

@dataclass
class Actor:
    """The authenticated user with their employee profile and resolved permissions."""
    user: User
    employee: Optional[Employee]
    permissions: Permissions

    @property
    def id(self) -> uuid.UUID:
        return self.user.id

    @property
    def is_employee(self) -> bool:
        return self.user.role == UserRole.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.user.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)

    @property
    def tenant_id(self) -> uuid.UUID:
        if self.is_employee:
            return self.employee.admin_id
        return self.user.id

    def can(self, resource: str, action: str) -> bool:
        flags = self.permissions.to_json().get(resource)
        if not isinstance(flags, dict):
            return False
        return flags.get(action) is True

async def get_current_actor(
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    employee = None
    if user.role == UserRole.EMPLOYEE:
        result = await db.execute(select(Employee).where(Employee.user_id == user.id))
        employee = result.scalar_one_or_none()
        if employee is None:
            logger.warning(f"Employee user {user.id} has no employee profile")
            raise HTTPException(status_code=403, detail="Employee profile not found")
    return Actor(user=user, employee=employee, permissions=effective_permissions(user, employee))

def check_permission(actor: Actor, resource: str, action: str):
    if not actor.can(resource, action):
        raise HTTPException(status_code=403, detail=f"You don't have permission to {action} {resource}")

def require_permission(*checks: str):
    """Dependency factory gating a route on permission flags.

    Takes one ``(resource, action)`` pair flattened, or several as
    ``"resource.action"`` strings: ``require_permission("campaigns", "view")``,
    ``require_permission("campaigns.view", "contacts.view")``.
    """
    if len(checks) == 2 and "." not in checks[0]:
        pairs = [tuple(checks)]
    else:
        pairs = [tuple(check.split(".", 1)) for check in checks]

    async def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        for resource, action in pairs:
            check_permission(actor, resource, action)
        return actor
    return dependency

def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return actor

def require_super_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.user.role != UserRole.SUPER_ADMIN:
        raise HTTPException(status_code=403, detail="Super admin privileges required")
    return actor

def campaign_scope(actor: Actor):
    """SQL predicate selecting the campaigns visible to the actor."""
    if not actor.is_employee:
        return Campaign.admin_id == actor.id
    assigned = select(CampaignEmployee.campaign_id).where(CampaignEmployee.employee_id == actor.employee.id)
    return and_(Campaign.admin_id == actor.tenant_id, Campaign.id.in_(assigned))

def contact_scope(actor: Actor):
    """SQL predicate selecting the contacts visible to the actor."""
    if not actor.is_employee:
        return Contact.admin_id == actor.id
    if actor.permissions.contacts.access_type == AccessType.ALL:
        return Contact.admin_id == actor.tenant_id
    assigned = (
        select(CampaignContact.contact_id)
        .join(CampaignEmployee, CampaignEmployee.campaign_id == CampaignContact.campaign_id)
        .where(CampaignEmployee.employee_id == actor.employee.id)
    )
    return and_(Contact.admin_id == actor.tenant_id, Contact.id.in_(assigned))

async def get_accessible_campaign(campaign_id: uuid.UUID, actor: Actor, db: AsyncSession) -> Campaign:
    result = await db.execute(select(Campaign).where(Campaign.id == campaign_id, campaign_scope(actor)))
    campaign = result.scalar_one_or_none()
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found or unauthorized")
    return campaign

async def get_accessible_contact(contact_id: uuid.UUID, actor: Actor, db: AsyncSession) -> Contact:
    result = await db.execute(select(Contact).where(Contact.id == contact_id, contact_scope(actor)))
    contact = result.scalar_one_or_none()
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found or unauthorized")
    return contact

from fastapi import APIRouter, HTTPException, Depends, Response
from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging
import uuid

from app.core.database import get_db
from app.core.permissions import (
    Actor,
    campaign_scope,
    get_accessible_campaign,
    require_admin,
    require_permission,
)
from app.models import (
    Appointment,
    CallLog,
    Campaign,
    CampaignContact,
    CampaignEmployee,
    CampaignStatus,
    ContactStatus,
    Employee,
)
from app.schemas.campaign import (
    CampaignCreate,
    CampaignDetail,
    CampaignMembership,
    CampaignRead,
    CampaignSettings,
    CampaignUpdate,
)
from app.schemas.employee import EmployeeRead

logger = logging.getLogger(__name__)

router = APIRouter()

async def get_contact_counts(db: AsyncSession, campaign_ids: list) -> dict:
    """Map campaign id to (members, active members)."""
    if not campaign_ids:
        return {}
    result = await db.execute(
        select(
            CampaignContact.campaign_id,
            func.count(),
            func.sum(case((CampaignContact.status == ContactStatus.ACTIVE, 1), else_=0)),
        )
        .where(CampaignContact.campaign_id.in_(campaign_ids))
        .group_by(CampaignContact.campaign_id)
    )
    return {campaign_id: (total, active or 0) for campaign_id, total, active in result.all()}

def to_campaign_read(campaign: Campaign, counts: dict, schema=CampaignRead, **extra):
    total, active = counts.get(campaign.id, (0, 0))
    return schema.model_validate(campaign).model_copy(
        update={"contact_count": total, "active_contact_count": active, **extra}
    )

async def load_campaign(db: AsyncSession, campaign_id: uuid.UUID) -> Campaign:
    result = await db.execute(
        select(Campaign).where(Campaign.id == campaign_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()

@router.get("", response_model=List[CampaignRead])
async def get_campaigns(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "view"))
):
    result = await db.execute(
        select(Campaign).where(campaign_scope(actor)).order_by(Campaign.created_at.desc())
    )
    campaigns = result.scalars().all()
    counts = await get_contact_counts(db, [c.id for c in campaigns])
    return [to_campaign_read(c, counts) for c in campaigns]

@router.post("", response_model=CampaignRead, status_code=201)
async def create_campaign(
    request: CampaignCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "create"))
):
    campaign = Campaign(
        name=request.name,
        description=request.description,
        start_date=request.start_date,
        end_date=request.end_date,
        status=CampaignStatus.ACTIVE,
        settings=request.settings or {},
        admin_id=actor.tenant_id,
    )
    db.add(campaign)
    await db.commit()
    logger.info(f"Campaign {campaign.id} created by {actor.id}")

    campaign = await load_campaign(db, campaign.id)
    return to_campaign_read(campaign, {})

@router.get("/{campaign_id}", response_model=CampaignDetail)
async def get_campaign(
    campaign_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "view"))
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    result = await db.execute(
        select(CampaignContact)
        .where(CampaignContact.campaign_id == campaign.id)
        .order_by(CampaignContact.created_at.desc())
    )
    memberships = result.scalars().all()
    counts = {
        campaign.id: (
            len(memberships),
            len([m for m in memberships if m.status == ContactStatus.ACTIVE]),
        )
    }
    return to_campaign_read(
        campaign, counts, schema=CampaignDetail,
        contacts=[CampaignMembership.model_validate(m) for m in memberships],
    )

@router.put("/{campaign_id}", response_model=CampaignRead)
async def update_campaign(
    campaign_id: uuid.UUID,
    request: CampaignUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    for field, value in request.model_dump(exclude_unset=True).items():
        if field in ("name", "status") and value is None:
            continue
        if field == "settings" and value is None:
            value = {}
        setattr(campaign, field, value)
    await db.commit()

    campaign = await load_campaign(db, campaign.id)
    counts = await get_contact_counts(db, [campaign.id])
    return to_campaign_read(campaign, counts)

@router.delete("/{campaign_id}", status_code=204)
async def delete_campaign(
    campaign_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "delete"))
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    await db.execute(delete(Appointment).where(Appointment.campaign_id == campaign.id))
    await db.execute(delete(CallLog).where(CallLog.campaign_id == campaign.id))
    await db.execute(delete(CampaignContact).where(CampaignContact.campaign_id == campaign.id))
    await db.execute(delete(CampaignEmployee).where(CampaignEmployee.campaign_id == campaign.id))
    await db.execute(delete(Campaign).where(Campaign.id == campaign.id))
    await db.commit()
    logger.info(f"Campaign {campaign_id} deleted by {actor.id}")
    return Response(status_code=204)

@router.get("/{campaign_id}/settings", response_model=CampaignSettings)
async def get_campaign_settings(
    campaign_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "view"))
):
    """The prompts the AI agent is started with for this campaign."""
    return await get_accessible_campaign(campaign_id, actor, db)

@router.put("/{campaign_id}/settings", response_model=CampaignSettings)
async def update_campaign_settings(
    campaign_id: uuid.UUID,
    request: CampaignSettings,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(campaign, field, value)
    await db.commit()
    return campaign

@router.get("/{campaign_id}/employees", response_model=List[EmployeeRead])
async def get_campaign_employees(
    campaign_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    result = await db.execute(
        select(Employee)
        .join(CampaignEmployee, CampaignEmployee.employee_id == Employee.id)
        .where(CampaignEmployee.campaign_id == campaign.id)
        .order_by(CampaignEmployee.assigned_at)
    )
    return result.scalars().all()

@router.post("/{campaign_id}/employees/{employee_id}", status_code=201)
async def assign_campaign_employee(
    campaign_id: uuid.UUID,
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    result = await db.execute(
        select(Employee).where(Employee.id == employee_id, Employee.admin_id == actor.id)
    )
    if not result.scalar_one_or_none():
        raise HTTPException(status_code=404, detail="Employee not found")

    existing = await db.get(CampaignEmployee, (campaign.id, employee_id))
    if existing:
        raise HTTPException(status_code=409, detail="Employee is already assigned to this campaign")

    db.add(CampaignEmployee(campaign_id=campaign.id, employee_id=employee_id))
    await db.commit()
    logger.info(f"Employee {employee_id} assigned to campaign {campaign.id}")
    return {"message": "Employee assigned to campaign"}

@router.delete("/{campaign_id}/employees/{employee_id}", status_code=204)
async def unassign_campaign_employee(
    campaign_id: uuid.UUID,
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_admin)
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    assignment = await db.get(CampaignEmployee, (campaign.id, employee_id))
    if not assignment:
        raise HTTPException(status_code=404, detail="Employee is not assigned to this campaign")
    await db.delete(assignment)
    await db.commit()
    return Response(status_code=204)

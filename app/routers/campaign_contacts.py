from fastapi import APIRouter, HTTPException, Depends, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging
import uuid

from app.core.database import get_db
from app.core.permissions import Actor, get_accessible_campaign, require_permission
from app.models import Appointment, CallLog, CampaignContact, Contact
from app.schemas.call_log import AppointmentSummary, CallLogRead, CallLogSummary
from app.schemas.campaign import CampaignMembership
from app.schemas.contact import CampaignContactRead, ContactCreate, ContactRead
from app.services.call_orchestrator import place_campaign_call

logger = logging.getLogger(__name__)

router = APIRouter()

def to_campaign_contact(membership: CampaignContact) -> CampaignContactRead:
    return CampaignContactRead(
        **ContactRead.model_validate(membership.contact).model_dump(),
        membership=CampaignMembership.model_validate(membership),
    )

async def get_membership(db: AsyncSession, campaign_id: uuid.UUID, contact_id: uuid.UUID) -> CampaignContact:
    result = await db.execute(
        select(CampaignContact).where(
            CampaignContact.campaign_id == campaign_id,
            CampaignContact.contact_id == contact_id,
        ).execution_options(populate_existing=True)
    )
    membership = result.scalar_one_or_none()
    if not membership:
        raise HTTPException(status_code=404, detail="Contact is not part of this campaign")
    return membership

@router.get("/{campaign_id}/contacts", response_model=List[CampaignContactRead])
async def get_campaign_contacts(
    campaign_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns.view", "contacts.view"))
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    result = await db.execute(
        select(CampaignContact)
        .where(CampaignContact.campaign_id == campaign.id)
        .order_by(CampaignContact.created_at.desc())
    )
    return [to_campaign_contact(m) for m in result.scalars().all()]

@router.post("/{campaign_id}/contacts", response_model=CampaignContactRead)
async def add_campaign_contact(
    campaign_id: uuid.UUID,
    request: ContactCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    """
    Add a contact to a campaign by phone number. A tenant contact with the same
    phone joins the campaign as is; otherwise a new contact is created first.
    """
    campaign = await get_accessible_campaign(campaign_id, actor, db)

    result = await db.execute(
        select(Contact).where(Contact.admin_id == campaign.admin_id, Contact.phone == request.phone)
    )
    contact = result.scalar_one_or_none()
    if contact:
        if await db.get(CampaignContact, (campaign.id, contact.id)):
            raise HTTPException(status_code=409, detail="Contact is already in this campaign")
        response.status_code = 200
    else:
        contact = Contact(
            name=request.name,
            phone=request.phone,
            email=request.email,
            tags=request.tags,
            custom_fields=request.custom_fields,
            admin_id=campaign.admin_id,
        )
        db.add(contact)
        await db.flush()
        response.status_code = 201

    db.add(CampaignContact(campaign_id=campaign.id, contact_id=contact.id))
    await db.commit()
    logger.info(f"Contact {contact.id} added to campaign {campaign.id}")

    membership = await get_membership(db, campaign.id, contact.id)
    return to_campaign_contact(membership)

@router.delete("/{campaign_id}/contacts/{contact_id}", status_code=204)
async def remove_campaign_contact(
    campaign_id: uuid.UUID,
    contact_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    membership = await get_membership(db, campaign.id, contact_id)
    await db.delete(membership)
    await db.commit()
    return Response(status_code=204)

@router.get("/{campaign_id}/leads")
async def get_campaign_leads(
    campaign_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns.view", "contacts.view"))
):
    """Campaign members who booked at least one appointment, most appointments first."""
    campaign = await get_accessible_campaign(campaign_id, actor, db)

    appointments_result = await db.execute(
        select(Appointment)
        .where(Appointment.campaign_id == campaign.id)
        .order_by(Appointment.appointment_time.desc())
    )
    appointments_by_contact = {}
    for appointment in appointments_result.scalars().all():
        appointments_by_contact.setdefault(appointment.contact_id, []).append(appointment)
    if not appointments_by_contact:
        return []

    logs_result = await db.execute(
        select(CallLog)
        .where(CallLog.campaign_id == campaign.id, CallLog.contact_id.in_(appointments_by_contact.keys()))
        .order_by(CallLog.created_at.desc())
    )
    latest_call = {}
    for log in logs_result.scalars().all():
        latest_call.setdefault(log.contact_id, log)

    members_result = await db.execute(
        select(CampaignContact).where(
            CampaignContact.campaign_id == campaign.id,
            CampaignContact.contact_id.in_(appointments_by_contact.keys()),
        )
    )
    leads = []
    for membership in members_result.scalars().all():
        appointments = appointments_by_contact[membership.contact_id]
        call = latest_call.get(membership.contact_id)
        leads.append({
            "contact": ContactRead.model_validate(membership.contact),
            "membership": CampaignMembership.model_validate(membership),
            "appointment_count": len(appointments),
            "latest_appointment": AppointmentSummary.model_validate(appointments[0]),
            "latest_call": CallLogSummary.model_validate(call) if call else None,
        })
    leads.sort(key=lambda lead: lead["appointment_count"], reverse=True)
    return leads

@router.post("/{campaign_id}/contacts/{contact_id}/call", status_code=201)
async def call_campaign_contact(
    campaign_id: uuid.UUID,
    contact_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns.view", "campaigns.edit"))
):
    """Place an AI call to one campaign member and record the attempt."""
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    membership = await get_membership(db, campaign.id, contact_id)

    call_log, payload = await place_campaign_call(db, campaign, membership)

    result = await db.execute(select(CallLog).where(CallLog.id == call_log.id).execution_options(populate_existing=True))
    return {
        "call_log": CallLogRead.model_validate(result.scalar_one()),
        "dialer": payload,
    }

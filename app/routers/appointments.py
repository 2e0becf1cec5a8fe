from fastapi import APIRouter, HTTPException, Depends, Response
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import List, Optional
import logging
import uuid

from app.core.database import get_db
from app.core.permissions import (
    Actor,
    campaign_scope,
    get_accessible_campaign,
    get_accessible_contact,
    require_permission,
)
from app.models import Appointment, AppointmentStatus, CallLog, Campaign
from app.schemas.appointment import AppointmentCreate, AppointmentRead, AppointmentUpdate
from app.utils.time import to_naive_utc

logger = logging.getLogger(__name__)

router = APIRouter()

def visible_appointments(actor: Actor):
    return select(Appointment).join(Campaign, Campaign.id == Appointment.campaign_id).where(campaign_scope(actor))

async def get_visible_appointment(db: AsyncSession, appointment_id: uuid.UUID, actor: Actor) -> Appointment:
    result = await db.execute(
        visible_appointments(actor)
        .where(Appointment.id == appointment_id)
        .execution_options(populate_existing=True)
    )
    appointment = result.scalar_one_or_none()
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found or unauthorized")
    return appointment

@router.get("", response_model=List[AppointmentRead])
async def get_appointments(
    campaign_id: Optional[uuid.UUID] = None,
    contact_id: Optional[uuid.UUID] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    status: Optional[AppointmentStatus] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "view"))
):
    stmt = visible_appointments(actor)
    if campaign_id:
        stmt = stmt.where(Appointment.campaign_id == campaign_id)
    if contact_id:
        stmt = stmt.where(Appointment.contact_id == contact_id)
    if start_date:
        stmt = stmt.where(Appointment.appointment_time >= to_naive_utc(start_date))
    if end_date:
        stmt = stmt.where(Appointment.appointment_time <= to_naive_utc(end_date))
    if status:
        stmt = stmt.where(Appointment.status == status)

    result = await db.execute(stmt.order_by(Appointment.appointment_time.asc()))
    return result.scalars().all()

@router.post("", response_model=AppointmentRead, status_code=201)
async def create_appointment(
    request: AppointmentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    campaign = await get_accessible_campaign(request.campaign_id, actor, db)
    contact = await get_accessible_contact(request.contact_id, actor, db)

    if request.call_log_id:
        call_log = await db.get(CallLog, request.call_log_id)
        if not call_log or call_log.campaign_id != campaign.id or call_log.contact_id != contact.id:
            raise HTTPException(status_code=400, detail="Call log does not match the campaign and contact")

    appointment = Appointment(
        campaign_id=campaign.id,
        contact_id=contact.id,
        call_log_id=request.call_log_id,
        title=request.title,
        description=request.description,
        appointment_time=request.appointment_time,
        status=request.status or AppointmentStatus.SCHEDULED,
    )
    db.add(appointment)
    await db.commit()
    logger.info(f"Appointment {appointment.id} booked for contact {contact.id} in campaign {campaign.id}")

    return await get_visible_appointment(db, appointment.id, actor)

@router.get("/{appointment_id}", response_model=AppointmentRead)
async def get_appointment(
    appointment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "view"))
):
    return await get_visible_appointment(db, appointment_id, actor)

@router.put("/{appointment_id}", response_model=AppointmentRead)
async def update_appointment(
    appointment_id: uuid.UUID,
    request: AppointmentUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    appointment = await get_visible_appointment(db, appointment_id, actor)
    for field, value in request.model_dump(exclude_unset=True).items():
        if field in ("title", "appointment_time", "status") and value is None:
            continue
        setattr(appointment, field, value)
    await db.commit()
    return await get_visible_appointment(db, appointment.id, actor)

@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(
    appointment_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "delete"))
):
    appointment = await get_visible_appointment(db, appointment_id, actor)
    await db.execute(delete(Appointment).where(Appointment.id == appointment.id))
    await db.commit()
    return Response(status_code=204)

from fastapi import APIRouter, HTTPException, Depends, Response
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import List, Optional
import csv
import io
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
from app.models import Appointment, CallLog, Campaign
from app.schemas.call_log import AppointmentSummary, CallLogCreate, CallLogRead, CallLogUpdate
from app.utils.time import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

EXPORT_COLUMNS = [
    "call_sid", "campaign", "contact", "phone", "status",
    "duration", "started_at", "ended_at", "recording_url",
]

def visible_call_logs(actor: Actor):
    return select(CallLog).join(Campaign, Campaign.id == CallLog.campaign_id).where(campaign_scope(actor))

async def with_appointments(db: AsyncSession, call_logs: list) -> List[CallLogRead]:
    """Attach the appointment booked on each call, if any."""
    ids = [log.id for log in call_logs]
    appointments = {}
    if ids:
        result = await db.execute(select(Appointment).where(Appointment.call_log_id.in_(ids)))
        for appointment in result.scalars().all():
            appointments.setdefault(appointment.call_log_id, appointment)

    items = []
    for log in call_logs:
        appointment = appointments.get(log.id)
        items.append(CallLogRead.model_validate(log).model_copy(update={
            "appointment": AppointmentSummary.model_validate(appointment) if appointment else None,
        }))
    return items

async def get_visible_call_log(db: AsyncSession, call_log_id: uuid.UUID, actor: Actor) -> CallLog:
    result = await db.execute(
        visible_call_logs(actor)
        .where(CallLog.id == call_log_id)
        .execution_options(populate_existing=True)
    )
    call_log = result.scalar_one_or_none()
    if not call_log:
        raise HTTPException(status_code=404, detail="Call log not found or unauthorized")
    return call_log

@router.get("", response_model=List[CallLogRead])
async def get_call_logs(
    campaign_id: Optional[uuid.UUID] = None,
    contact_id: Optional[uuid.UUID] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("callLogs", "view"))
):
    stmt = visible_call_logs(actor)
    if campaign_id:
        stmt = stmt.where(CallLog.campaign_id == campaign_id)
    if contact_id:
        stmt = stmt.where(CallLog.contact_id == contact_id)
    if start_date:
        stmt = stmt.where(CallLog.started_at >= to_naive_utc(start_date))
    if end_date:
        stmt = stmt.where(CallLog.ended_at <= to_naive_utc(end_date))

    result = await db.execute(stmt.order_by(CallLog.created_at.desc()))
    return await with_appointments(db, result.scalars().all())

@router.post("", response_model=CallLogRead, status_code=201)
async def create_call_log(
    request: CallLogCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    campaign = await get_accessible_campaign(request.campaign_id, actor, db)
    contact = await get_accessible_contact(request.contact_id, actor, db)

    call_log = CallLog(**request.model_dump(exclude={"campaign_id", "contact_id"}), campaign_id=campaign.id, contact_id=contact.id)
    db.add(call_log)
    await db.commit()
    logger.info(f"Call log {call_log.id} ({call_log.call_sid}) recorded by {actor.id}")

    call_log = await get_visible_call_log(db, call_log.id, actor)
    return CallLogRead.model_validate(call_log)

@router.get("/export")
async def export_call_logs(
    campaign_id: Optional[uuid.UUID] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("callLogs", "download"))
):
    stmt = visible_call_logs(actor)
    if campaign_id:
        stmt = stmt.where(CallLog.campaign_id == campaign_id)
    result = await db.execute(stmt.order_by(CallLog.created_at.desc()))

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for log in result.scalars().all():
        writer.writerow([
            log.call_sid,
            log.campaign.name if log.campaign else "",
            log.contact.name if log.contact else "",
            log.contact.phone if log.contact else "",
            log.status,
            log.duration if log.duration is not None else "",
            log.started_at.isoformat() if log.started_at else "",
            log.ended_at.isoformat() if log.ended_at else "",
            log.recording_url or "",
        ])

    filename = f"call-logs-{utcnow().date().isoformat()}.csv"
    return Response(
        content=output.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.get("/{call_log_id}", response_model=CallLogRead)
async def get_call_log(
    call_log_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("callLogs", "view"))
):
    call_log = await get_visible_call_log(db, call_log_id, actor)
    items = await with_appointments(db, [call_log])
    return items[0]

@router.put("/{call_log_id}", response_model=CallLogRead)
async def update_call_log(
    call_log_id: uuid.UUID,
    request: CallLogUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    """Record the outcome of a call: status, duration, recording and transcript."""
    call_log = await get_visible_call_log(db, call_log_id, actor)
    for field, value in request.model_dump(exclude_unset=True).items():
        if field == "status" and not value:
            continue
        setattr(call_log, field, value)
    await db.commit()

    call_log = await get_visible_call_log(db, call_log.id, actor)
    items = await with_appointments(db, [call_log])
    return items[0]

@router.delete("/{call_log_id}", status_code=204)
async def delete_call_log(
    call_log_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "delete"))
):
    call_log = await get_visible_call_log(db, call_log_id, actor)
    await db.execute(update(Appointment).where(Appointment.call_log_id == call_log.id).values(call_log_id=None))
    await db.execute(delete(CallLog).where(CallLog.id == call_log.id))
    await db.commit()
    return Response(status_code=204)

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timedelta
from typing import Optional
import logging
import uuid

from app.core.database import get_db
from app.core.permissions import Actor, get_accessible_campaign, require_permission
from app.models import Appointment, AppointmentStatus, CallLog, CampaignContact
from app.schemas.appointment import CalendarAppointment
from app.schemas.base import Pagination
from app.schemas.contact import ContactSummary
from app.services import dialer
from app.services.campaign_stats import build_campaign_stats
from app.utils.time import to_naive_utc

logger = logging.getLogger(__name__)

router = APIRouter()

APPOINTMENT_DISPLAY_DURATION = timedelta(hours=1)
CALENDAR_BLOCK = timedelta(minutes=30)
APPOINTMENT_COLORS = {"backgroundColor": "#10B981", "borderColor": "#059669"}
CALL_COLORS = {"backgroundColor": "#6366F1", "borderColor": "#4F46E5"}

def format_duration(seconds: Optional[int]) -> str:
    seconds = seconds or 0
    return f"{seconds // 60:02d}:{seconds % 60:02d}"

def parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        return to_naive_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        logger.warning(f"Unparseable transcript timestamp: {value}")
        return None

@router.get("/{campaign_id}/appointments")
async def get_campaign_appointments(
    campaign_id: uuid.UUID,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    status: Optional[AppointmentStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "view"))
):
    """Campaign appointments in time order, shaped for the calendar view."""
    campaign = await get_accessible_campaign(campaign_id, actor, db)

    conditions = [Appointment.campaign_id == campaign.id]
    if start_date:
        conditions.append(Appointment.appointment_time >= to_naive_utc(start_date))
    if end_date:
        conditions.append(Appointment.appointment_time <= to_naive_utc(end_date))
    if status:
        conditions.append(Appointment.status == status)

    total_result = await db.execute(select(func.count(Appointment.id)).where(*conditions))
    total = total_result.scalar() or 0

    result = await db.execute(
        select(Appointment)
        .where(*conditions)
        .order_by(Appointment.appointment_time.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    appointments = [
        CalendarAppointment(
            id=a.id,
            title=a.title,
            description=a.description or "",
            start=a.appointment_time,
            end=a.appointment_time + APPOINTMENT_DISPLAY_DURATION,
            status=a.status,
            contact=ContactSummary.model_validate(a.contact) if a.contact else None,
        )
        for a in result.scalars().all()
    ]
    return {
        "appointments": appointments,
        "pagination": Pagination.build(total, page, limit),
    }

@router.get("/{campaign_id}/calendar-events")
async def get_campaign_calendar_events(
    campaign_id: uuid.UUID,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns", "view"))
):
    if not start or not end:
        raise HTTPException(status_code=400, detail="Start and end dates are required")
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    start, end = to_naive_utc(start), to_naive_utc(end)

    appointments_result = await db.execute(
        select(Appointment).where(
            Appointment.campaign_id == campaign.id,
            Appointment.appointment_time.between(start, end),
        )
    )
    calls_result = await db.execute(
        select(CallLog).where(
            CallLog.campaign_id == campaign.id,
            CallLog.started_at.between(start, end),
        )
    )

    events = [
        {
            "id": str(a.id),
            "title": a.title,
            "start": a.appointment_time,
            "end": a.appointment_time + CALENDAR_BLOCK,
            "type": "appointment",
            "status": a.status.value,
            "phone_number": a.contact.phone if a.contact else None,
            **APPOINTMENT_COLORS,
        }
        for a in appointments_result.scalars().all()
    ]
    events += [
        {
            "id": str(log.id),
            "title": f"Call: {log.contact.phone if log.contact else log.call_sid}",
            "start": log.started_at,
            "end": log.started_at + CALENDAR_BLOCK,
            "type": "call",
            "status": log.status,
            "phone_number": log.contact.phone if log.contact else None,
            **CALL_COLORS,
        }
        for log in calls_result.scalars().all()
    ]
    events.sort(key=lambda event: event["start"])
    return {"events": events}

@router.get("/{campaign_id}/stats")
async def get_campaign_stats(
    campaign_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("campaigns.view", "aiSummary.view"))
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)

    memberships = await db.execute(select(CampaignContact).where(CampaignContact.campaign_id == campaign.id))
    call_logs = await db.execute(select(CallLog).where(CallLog.campaign_id == campaign.id))
    appointments = await db.execute(select(Appointment).where(Appointment.campaign_id == campaign.id))

    return build_campaign_stats(
        memberships.scalars().all(),
        call_logs.scalars().all(),
        appointments.scalars().all(),
    )

@router.get("/{campaign_id}/call-logs")
async def get_campaign_call_logs(
    campaign_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("callLogs", "view"))
):
    """Transcribed calls of this campaign as reported by the AI dialer, newest first."""
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    result = await db.execute(select(CallLog).where(CallLog.campaign_id == campaign.id))
    logs_by_sid = {log.call_sid: log for log in result.scalars().all() if log.call_sid}

    transcripts = await dialer.get_all_transcripts()

    call_logs = []
    for transcript in transcripts:
        if not isinstance(transcript, dict):
            continue
        log = logs_by_sid.get(transcript.get("call_sid"))
        if not log:
            continue
        call_logs.append({
            "id": transcript.get("id"),
            "call_sid": log.call_sid,
            "phone_number": transcript.get("phone_number") or (log.contact.phone if log.contact else None),
            "timestamp": parse_timestamp(transcript.get("last_updated")) or log.started_at or log.created_at,
            "status": log.status.lower(),
            "duration": format_duration(log.duration),
            "has_recording": bool(log.recording_url),
            "has_transcript": True,
        })
    call_logs.sort(key=lambda item: item["timestamp"], reverse=True)
    return {"call_logs": call_logs}

@router.get("/{campaign_id}/call-logs/{call_sid}")
async def get_campaign_call_transcript(
    campaign_id: uuid.UUID,
    call_sid: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("callLogs", "view"))
):
    campaign = await get_accessible_campaign(campaign_id, actor, db)
    result = await db.execute(
        select(CallLog.id).where(CallLog.campaign_id == campaign.id, CallLog.call_sid == call_sid)
    )
    if result.first() is None:
        raise HTTPException(status_code=404, detail="Call not found in this campaign")

    transcript = await dialer.get_transcript(call_sid)
    return {"transcript": transcript}

"""Campaign-scoped outbound calls.

Placing a call forwards one ``POST /start_call`` to the AI dialer with the
campaign's prompts, then records the attempt. Nothing is written when the
dialer refuses the call.
"""
import logging

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import CallLog, Campaign, CampaignContact, ContactStatus
from app.services import dialer
from app.utils.time import utcnow

logger = logging.getLogger(__name__)

INITIATED_STATUS = "INITIATED"

async def place_campaign_call(db: AsyncSession, campaign: Campaign, membership: CampaignContact) -> tuple[CallLog, dict]:
    contact = membership.contact
    if membership.status != ContactStatus.ACTIVE:
        raise HTTPException(
            status_code=400,
            detail=f"Contact is {membership.status.value.lower()} in this campaign and cannot be called",
        )

    payload = await dialer.start_call(
        to_number=contact.phone,
        system_message=campaign.system_message,
        initial_message=campaign.initial_message,
    )
    call_sid = payload.get("call_sid") or payload.get("callSid") or ""
    if not call_sid:
        logger.warning(f"Dialer accepted call to {contact.phone} without returning a call_sid")

    now = utcnow()
    call_log = CallLog(
        campaign_id=campaign.id,
        contact_id=contact.id,
        call_sid=call_sid,
        status=INITIATED_STATUS,
        started_at=now,
    )
    membership.call_attempts = (membership.call_attempts or 0) + 1
    membership.last_called = now
    db.add(call_log)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        logger.error(f"Call {call_sid} to {contact.phone} was placed but could not be recorded", exc_info=True)
        raise

    logger.info(f"Campaign {campaign.id} called contact {contact.id} (call_sid={call_sid})")
    return call_log, payload

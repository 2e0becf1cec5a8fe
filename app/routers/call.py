from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
import logging

from app.core.config import settings
from app.core.permissions import Actor, require_permission
from app.schemas.call_log import ForwardCallRequest, StartCallRequest
from app.services import dialer

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/start")
async def start_call(
    start_call_request: StartCallRequest,
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    """Start a dialer call to a bare number, outside any campaign."""
    if not start_call_request.to_number:
        raise HTTPException(status_code=400, detail="Phone number is required")
    if not settings.AI_DIALER_URL:
        raise HTTPException(status_code=500, detail="AI dialer URL is not configured")

    logger.info(f"User {actor.id} starting call to {start_call_request.to_number}")
    return await dialer.start_call(to_number=start_call_request.to_number)

@router.post("/start_call")
async def forward_start_call(
    forward_call_request: ForwardCallRequest,
    actor: Actor = Depends(require_permission("campaigns", "edit"))
):
    """Pass the request through to the dialer and mirror its reply."""
    response = await dialer.forward_start_call(
        to_number=forward_call_request.to_number,
        system_message=forward_call_request.system_message,
        initial_message=forward_call_request.initial_message,
    )
    try:
        content = response.json()
    except ValueError:
        content = {"error": response.text or "Invalid response from AI dialer"}
    return JSONResponse(status_code=response.status_code, content=content)

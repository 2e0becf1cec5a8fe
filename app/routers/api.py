from fastapi import APIRouter
from app.core.config import settings
from app.routers import (
    auth,
    health,
    user,
    team,
    campaigns,
    campaign_contacts,
    campaign_activity,
    contacts,
    call_logs,
    appointments,
    call,
)

api_router = APIRouter(prefix=settings.API_PREFIX)

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(health.router, tags=["health"])
api_router.include_router(user.router, prefix="/users", tags=["users"])
api_router.include_router(team.router, prefix="/team", tags=["team"])
api_router.include_router(campaigns.router, prefix="/campaigns", tags=["campaigns"])
api_router.include_router(campaign_contacts.router, prefix="/campaigns", tags=["campaigns"])
api_router.include_router(campaign_activity.router, prefix="/campaigns", tags=["campaigns"])
api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
api_router.include_router(call_logs.router, prefix="/call-logs", tags=["call_logs"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(call.router, prefix="/calls", tags=["calls"])

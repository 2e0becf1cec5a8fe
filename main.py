from apscheduler.schedulers.asyncio import AsyncIOScheduler
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import asyncio
import logging

from app.core.config import settings
from app.core.database import Base, engine
from app.core.errors import register_error_handlers
from app.utils.log import setup_logging
from app.routers.api import api_router
from app.services import verification
from app.services.email_queue import email_queue

logger = logging.getLogger(__name__)

async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    # Initialize database
    await init_models()

    # Create scheduler with the current event loop
    scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())

    # Drain the verification email queue
    scheduler.add_job(
        email_queue.process_next,
        trigger='interval',
        seconds=settings.EMAIL_QUEUE_INTERVAL_SECONDS,
        id='process_email_queue',
        max_instances=1,
    )

    # Drop expired one-time codes and pending signups
    scheduler.add_job(verification.purge_expired, trigger='interval', minutes=5, id='purge_expired_verifications')

    scheduler.start()
    logger.info(f"{settings.APP_NAME} started")

    yield

    scheduler.remove_job('process_email_queue')
    scheduler.remove_job('purge_expired_verifications')
    scheduler.shutdown()
    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    description="Backend API for the AI dialer dashboard",
    version="0.1.0",
    lifespan=lifespan
)

register_error_handlers(app)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)

@app.get("/")
async def root():
    return {"message": f"Welcome to the {settings.APP_NAME} API"}

import uvicorn

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)

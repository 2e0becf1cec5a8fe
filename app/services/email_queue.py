"""In-memory outbound email queue.

Drained one item per tick by the application scheduler. A failed delivery goes
to the back of the queue until ``max_retries`` retries are spent. Nothing
survives a restart.
"""
from collections import deque
from dataclasses import dataclass
import logging

from app.core.config import settings
from app.utils.email import email_service

logger = logging.getLogger(__name__)

@dataclass
class EmailQueueItem:
    to: str
    otp: str
    type: str = "verification"
    retries: int = 0

class EmailDeliveryError(Exception):
    pass

class EmailQueue:
    def __init__(self, max_retries: int = settings.EMAIL_MAX_RETRIES):
        self.queue: deque[EmailQueueItem] = deque()
        self.max_retries = max_retries

    async def add_to_queue(self, item: EmailQueueItem):
        self.queue.append(item)

    def get_queue_length(self) -> int:
        return len(self.queue)

    async def process_email(self, item: EmailQueueItem):
        if item.type == "verification":
            sent = await email_service.send_verification_email(to_email=item.to, otp=item.otp)
        else:
            raise EmailDeliveryError(f"Unknown email type {item.type}")
        if not sent:
            raise EmailDeliveryError(f"SMTP delivery to {item.to} failed")

    async def process_next(self) -> bool:
        """Send the oldest queued email. Returns True when one was delivered."""
        if not self.queue:
            return False
        item = self.queue.popleft()
        try:
            await self.process_email(item)
            return True
        except EmailDeliveryError as e:
            if item.retries < self.max_retries:
                item.retries += 1
                logger.warning(f"{e}; retry {item.retries}/{self.max_retries}")
                self.queue.append(item)
            else:
                logger.error(f"Dropping {item.type} email to {item.to} after {item.retries} retries")
            return False

email_queue = EmailQueue()

"""Signup verification state: one-time codes and registrations awaiting them.

Both stores are process-local and expire entries after a TTL; a scheduler job
calls ``purge_expired`` every few minutes.
"""
import secrets
import time
from typing import Callable, Generic, Optional, TypeVar

from app.core.config import settings

T = TypeVar("T")

class ExpiringStore(Generic[T]):
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, tuple[T, float]] = {}

    def set(self, key: str, value: T):
        self._entries[key] = (value, self.clock() + self.ttl_seconds)

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires = entry
        if self.clock() > expires:
            del self._entries[key]
            return None
        return value

    def pop(self, key: str) -> Optional[T]:
        value = self.get(key)
        self._entries.pop(key, None)
        return value

    def purge_expired(self) -> int:
        now = self.clock()
        expired = [key for key, (_, expires) in self._entries.items() if now > expires]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self):
        return len(self._entries)

otp_store: ExpiringStore[str] = ExpiringStore(settings.OTP_TTL_MINUTES * 60)
pending_users: ExpiringStore[dict] = ExpiringStore(settings.PENDING_USER_TTL_MINUTES * 60)

def _key(email: str) -> str:
    return email.strip().lower()

def generate_otp() -> str:
    """Six upper-case hex characters."""
    return secrets.token_hex(3).upper()

def store_otp(email: str, otp: str):
    otp_store.set(_key(email), otp)

def verify_otp(email: str, provided_otp: str) -> bool:
    """Check a code; a matching code is consumed."""
    provided = provided_otp.strip().upper()
    if settings.MASTER_OTP and secrets.compare_digest(provided, settings.MASTER_OTP.upper()):
        return True
    stored = otp_store.get(_key(email))
    if stored is None:
        return False
    is_valid = secrets.compare_digest(stored, provided)
    if is_valid:
        otp_store.pop(_key(email))
    return is_valid

def store_pending_user(data: dict):
    pending_users.set(_key(data["email"]), dict(data))

def get_pending_user(email: str) -> Optional[dict]:
    return pending_users.get(_key(email))

def remove_pending_user(email: str):
    pending_users.pop(_key(email))

def purge_expired():
    otp_store.purge_expired()
    pending_users.purge_expired()

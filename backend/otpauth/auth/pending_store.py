"""
Pending Registration Store

Signups waiting for OTP confirmation live here, outside the users table, so
unverified addresses never reach durable storage. Entries are not purged when
their OTP expires; an expired entry is simply rejected by verification and can
still receive a fresh code.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Iterator, Optional
import json
import logging
import threading

import redis

logger = logging.getLogger(__name__)

@dataclass
class PendingRegistration:
    email: str
    password_hash: str
    otp: str
    otp_expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.otp_expires_at

    def to_json(self) -> str:
        data = asdict(self)
        data["otp_expires_at"] = self.otp_expires_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw) -> "PendingRegistration":
        data = json.loads(raw)
        data["otp_expires_at"] = datetime.fromisoformat(data["otp_expires_at"])
        return cls(**data)

class PendingRegistrationStore(ABC):
    """Key-value store of pending registrations, keyed by email"""

    @abstractmethod
    def get(self, email: str) -> Optional[PendingRegistration]:
        ...

    @abstractmethod
    def save(self, pending: PendingRegistration) -> None:
        """Insert or overwrite the entry for ``pending.email``"""

    @abstractmethod
    def delete(self, email: str) -> None:
        ...

    @abstractmethod
    def lock(self, email: str):
        """Context manager holding an exclusive lock on one email"""

    def __contains__(self, email: str) -> bool:
        return self.get(email) is not None

class InMemoryPendingStore(PendingRegistrationStore):
    """Process-lifetime store. Everything is lost on restart."""

    def __init__(self):
        self._entries: Dict[str, PendingRegistration] = {}
        self._entries_lock = threading.Lock()
        # email -> [lock, holders]; an entry lives only while someone holds or waits on it
        self._key_locks: Dict[str, list] = {}
        self._key_locks_guard = threading.Lock()

    def get(self, email: str) -> Optional[PendingRegistration]:
        with self._entries_lock:
            return self._entries.get(email)

    def save(self, pending: PendingRegistration) -> None:
        with self._entries_lock:
            self._entries[pending.email] = pending

    def delete(self, email: str) -> None:
        with self._entries_lock:
            self._entries.pop(email, None)

    @contextmanager
    def lock(self, email: str) -> Iterator[None]:
        with self._key_locks_guard:
            entry = self._key_locks.setdefault(email, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._key_locks_guard:
                entry[1] -= 1
                if not entry[1]:
                    del self._key_locks[email]

    def __len__(self) -> int:
        with self._entries_lock:
            return len(self._entries)

class RedisPendingStore(PendingRegistrationStore):
    """Redis-backed store shared by every worker process"""

    KEY_PREFIX = "pending_registration:"
    LOCK_PREFIX = "pending_registration_lock:"

    def __init__(self, client: redis.Redis, lock_timeout: int = 10, blocking_timeout: int = 5):
        self.client = client
        self.lock_timeout = lock_timeout
        self.blocking_timeout = blocking_timeout

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisPendingStore":
        return cls(redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, email: str) -> str:
        return f"{self.KEY_PREFIX}{email}"

    def get(self, email: str) -> Optional[PendingRegistration]:
        raw = self.client.get(self._key(email))
        if raw is None:
            return None
        return PendingRegistration.from_json(raw)

    def save(self, pending: PendingRegistration) -> None:
        self.client.set(self._key(pending.email), pending.to_json())

    def delete(self, email: str) -> None:
        self.client.delete(self._key(email))

    @contextmanager
    def lock(self, email: str) -> Iterator[None]:
        lock = self.client.lock(
            f"{self.LOCK_PREFIX}{email}",
            timeout=self.lock_timeout,
            blocking_timeout=self.blocking_timeout
        )
        if not lock.acquire():
            raise redis.exceptions.LockError(f"Could not lock pending registration for {email}")
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockNotOwnedError:
                logger.warning(f"Pending registration lock for {email} expired before release")

def build_pending_store(settings) -> PendingRegistrationStore:
    """Create the store selected by ``settings.pending_store_backend``"""

    if settings.pending_store_backend == "redis":
        logger.info("Using Redis pending registration store")
        return RedisPendingStore.from_url(settings.redis_url)

    logger.info("Using in-memory pending registration store")
    return InMemoryPendingStore()

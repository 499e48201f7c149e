from datetime import datetime, timedelta
from typing import Callable
import logging
import secrets

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..core.logger import SecurityEventType, log_security_event
from ..database import User, create_user, get_user_by_email
from ..exceptions import (
    AlreadyRegisteredError,
    OTPInvalidOrExpiredError,
    PendingRegistrationNotFoundError,
)
from .otp_service import OTPDelivery, RESEND, SIGNUP, otp_service
from .pending_store import PendingRegistration, PendingRegistrationStore
from .utiles import generate_otp, hash_password, mask_email

logger = logging.getLogger(__name__)

class RegistrationService:
    """Signup handshake: request a code, confirm it, or ask for a new one.

    A durable ``User`` is only written once the emailed code is confirmed.
    Until then the signup lives in the pending store, one entry per email.
    """

    def __init__(
        self,
        store: PendingRegistrationStore,
        delivery: OTPDelivery = otp_service,
        otp_length: int = None,
        otp_expire_minutes: int = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.delivery = delivery
        self.otp_length = otp_length or settings.otp_length
        self.otp_ttl = timedelta(minutes=otp_expire_minutes or settings.otp_expire_minutes)
        self.clock = clock

    def _new_code(self):
        return generate_otp(self.otp_length), self.clock() + self.otp_ttl

    def request_signup(self, db: Session, email: str, password: str) -> PendingRegistration:
        password_hash = hash_password(password)

        with self.store.lock(email):
            # Checked under the lock so a concurrent verify cannot slip in between
            if get_user_by_email(db, email):
                log_security_event(SecurityEventType.SIGNUP_REJECTED, email, reason="already_registered")
                raise AlreadyRegisteredError()

            otp, expires_at = self._new_code()
            pending = PendingRegistration(
                email=email,
                password_hash=password_hash,
                otp=otp,
                otp_expires_at=expires_at
            )
            self.store.save(pending)

        self.delivery.send(email, otp, SIGNUP)
        log_security_event(SecurityEventType.SIGNUP_REQUESTED, email)
        return pending

    def verify_otp(self, db: Session, email: str, otp: str) -> User:
        with self.store.lock(email):
            pending = self.store.get(email)
            if pending is None:
                log_security_event(SecurityEventType.OTP_VERIFICATION_FAILED, email, reason="no_pending_signup")
                raise PendingRegistrationNotFoundError()

            code_matches = secrets.compare_digest(pending.otp.encode("utf-8"), otp.encode("utf-8"))
            if not code_matches or pending.is_expired(self.clock()):
                log_security_event(
                    SecurityEventType.OTP_VERIFICATION_FAILED,
                    email,
                    reason="mismatch" if not code_matches else "expired"
                )
                raise OTPInvalidOrExpiredError()

            try:
                user = create_user(db, pending.email, pending.password_hash)
            except IntegrityError:
                # Another worker registered this email first
                db.rollback()
                self.store.delete(email)
                logger.warning(f"Duplicate registration for {mask_email(email)} discarded")
                raise AlreadyRegisteredError()

            self.store.delete(email)

        log_security_event(SecurityEventType.OTP_VERIFIED, email, user_id=user.id)
        return user

    def resend_otp(self, email: str) -> PendingRegistration:
        with self.store.lock(email):
            pending = self.store.get(email)
            if pending is None:
                raise PendingRegistrationNotFoundError()

            pending.otp, pending.otp_expires_at = self._new_code()
            self.store.save(pending)

        self.delivery.send(email, pending.otp, RESEND)
        log_security_event(SecurityEventType.OTP_RESENT, email)
        return pending

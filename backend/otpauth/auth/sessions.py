from dataclasses import dataclass
from typing import Any, Optional
import logging

from sqlalchemy.orm import Session

from ..core.logger import SecurityEventType, log_security_event
from ..database import get_user_by_email
from ..exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    UserNotFoundError,
)
from .jwt_handler import JWTHandler, jwt_handler
from .utiles import verify_password

logger = logging.getLogger(__name__)

@dataclass
class TokenPair:
    access_token: str
    refresh_token: str

class SessionService:
    """Issues bearer tokens to verified users.

    Verification is stateless: a token is valid while its signature checks out
    and it has not expired. Refresh tokens are reusable until they expire.
    """

    def __init__(self, handler: JWTHandler = jwt_handler):
        self.handler = handler

    def login(self, db: Session, email: str, password: str) -> TokenPair:
        user = get_user_by_email(db, email)
        if not user:
            log_security_event(SecurityEventType.LOGIN_FAILURE, email, reason="unknown_user")
            raise UserNotFoundError()

        if not verify_password(password, user.password_hash):
            log_security_event(SecurityEventType.LOGIN_FAILURE, email, reason="bad_password")
            raise InvalidCredentialsError()

        tokens = TokenPair(
            access_token=self.handler.create_access_token(user.id),
            refresh_token=self.handler.create_refresh_token(user.id)
        )

        log_security_event(SecurityEventType.LOGIN_SUCCESS, email, user_id=user.id)
        return tokens

    def refresh_access_token(self, refresh_token: Optional[Any]) -> str:
        if not refresh_token:
            raise MissingTokenError()

        payload = None
        if isinstance(refresh_token, str):
            payload = self.handler.verify_refresh_token(refresh_token)
        if not payload:
            log_security_event(SecurityEventType.TOKEN_REFRESH_FAILED)
            raise InvalidTokenError()

        user_id = payload["user_id"]
        access_token = self.handler.create_access_token(user_id)

        log_security_event(SecurityEventType.TOKEN_REFRESHED, user_id=user_id)
        return access_token

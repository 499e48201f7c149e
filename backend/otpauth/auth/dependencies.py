from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..database import get_db, get_user_by_id, User
from ..config import settings
from ..exceptions import AuthenticationError, InvalidAccessTokenError
from .jwt_handler import JWTHandler, jwt_handler
from .pending_store import build_pending_store
from .registration import RegistrationService
from .sessions import SessionService

logger = logging.getLogger(__name__)

# Security scheme; missing credentials are reported by get_current_user
security = HTTPBearer(auto_error=False)

# Service instances shared by all requests
pending_store = build_pending_store(settings)
registration_service = RegistrationService(pending_store)
session_service = SessionService(jwt_handler)

def get_registration_service() -> RegistrationService:
    return registration_service

def get_session_service() -> SessionService:
    return session_service

def get_jwt_handler() -> JWTHandler:
    return jwt_handler

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    handler: JWTHandler = Depends(get_jwt_handler)
) -> User:
    """Get current authenticated user from JWT access token"""

    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = handler.verify_access_token(credentials.credentials)
    if not payload:
        raise InvalidAccessTokenError()

    user = get_user_by_id(db, payload["user_id"])
    if not user:
        logger.warning(f"Access token refers to missing user {payload['user_id']}")
        raise InvalidAccessTokenError()

    return user

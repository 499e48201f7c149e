from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from typing import Any
import logging

from ..database import get_db, User
from ..schemas import (
    SignupRequest,
    VerifyOTPRequest,
    ResendOTPRequest,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    MessageResponse
)
from ..exceptions import operation_boundary
from .dependencies import (
    get_current_user,
    get_registration_service,
    get_session_service
)
from .registration import RegistrationService
from .sessions import SessionService

router = APIRouter()
logger = logging.getLogger(__name__)

# Handlers are sync so FastAPI runs them in its threadpool; bcrypt and the
# pending store locks would otherwise block the event loop.

@router.post("/signup", response_model=MessageResponse)
def signup(
    request: SignupRequest,
    db: Session = Depends(get_db),
    registration: RegistrationService = Depends(get_registration_service)
):
    """Start registration - stores the signup and sends an OTP"""

    with operation_boundary("signup"):
        registration.request_signup(db, request.email, request.password)

    return MessageResponse(message="OTP sent successfully. Check console for OTP.")

@router.post("/verify-otp", response_model=MessageResponse)
def verify_otp(
    request: VerifyOTPRequest,
    db: Session = Depends(get_db),
    registration: RegistrationService = Depends(get_registration_service)
):
    """Confirm the OTP and create the user"""

    with operation_boundary("verify-otp"):
        user = registration.verify_otp(db, request.email, request.otp)

    logger.info(f"User {user.id} registered")
    return MessageResponse(message="OTP verified successfully and user registered")

@router.post("/resend-otp", response_model=MessageResponse)
def resend_otp(
    request: ResendOTPRequest,
    registration: RegistrationService = Depends(get_registration_service)
):
    """Issue a fresh OTP for a pending signup"""

    with operation_boundary("resend-otp"):
        registration.resend_otp(request.email)

    return MessageResponse(message="OTP resent successfully. Check console for OTP.")

@router.post("/login", response_model=LoginResponse)
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    sessions: SessionService = Depends(get_session_service)
):
    """Exchange credentials for access and refresh tokens"""

    with operation_boundary("login"):
        tokens = sessions.login(db, request.email, request.password)

    return LoginResponse(
        message="Login successful",
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token
    )

@router.post("/refresh-token", response_model=AccessTokenResponse)
def refresh_token(
    body: Any = Body(None),
    sessions: SessionService = Depends(get_session_service)
):
    """Mint a new access token from a refresh token"""

    with operation_boundary("refresh-token"):
        request = RefreshTokenRequest.model_validate(body) if isinstance(body, dict) else RefreshTokenRequest()
        access_token = sessions.refresh_access_token(request.refresh_token)

    return AccessTokenResponse(access_token=access_token)

@router.get("/protected", response_model=MessageResponse)
def protected(current_user: User = Depends(get_current_user)):
    """Example route gated by a valid access token"""

    return MessageResponse(message="You have accessed a protected route!")

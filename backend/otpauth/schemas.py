from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Optional

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

def _check_password(v: str) -> str:
    if not v:
        raise ValueError('Password must not be empty')
    if len(v.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')
    return v

# Base schemas
class MessageResponse(BaseModel):
    message: str

# Registration schemas
class SignupRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: str

    @field_validator('otp', mode='before')
    @classmethod
    def coerce_otp(cls, v):
        # Clients sometimes post the code as a JSON number
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

class ResendOTPRequest(BaseModel):
    email: EmailStr

# Session schemas
class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

class LoginResponse(BaseModel):
    message: str
    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")

    class Config:
        populate_by_name = True

class RefreshTokenRequest(BaseModel):
    # Any JSON value is accepted; non-string tokens are rejected as invalid
    refresh_token: Optional[Any] = Field(None, alias="refreshToken")

    class Config:
        populate_by_name = True

class AccessTokenResponse(BaseModel):
    access_token: str = Field(..., alias="accessToken")

    class Config:
        populate_by_name = True

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./otpauth.db"

    # JWT
    jwt_secret_key: str
    jwt_refresh_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "otpauth"
    jwt_access_token_expire_minutes: int = 15
    jwt_refresh_token_expire_days: int = 7

    # OTP / signup
    otp_length: int = 6
    otp_expire_minutes: int = 10
    bcrypt_rounds: int = 10

    # Pending registration store: "memory" or "redis"
    pending_store_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"

    # Application
    app_name: str = "OTP Auth"
    app_version: str = "1.0.0"
    debug: bool = False
    cors_origins: List[str] = ["http://localhost:3000"]
    allowed_hosts: List[str] = ["*"]
    auth_route_prefix: str = ""

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    @field_validator("jwt_refresh_secret_key")
    @classmethod
    def refresh_secret_differs(cls, v, info):
        if v == info.data.get("jwt_secret_key"):
            raise ValueError("jwt_refresh_secret_key must differ from jwt_secret_key")
        return v

    @field_validator("pending_store_backend")
    @classmethod
    def known_store_backend(cls, v):
        v = v.lower()
        if v not in ("memory", "redis"):
            raise ValueError("pending_store_backend must be 'memory' or 'redis'")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False

settings = Settings()

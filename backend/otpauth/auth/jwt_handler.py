from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import uuid
import jwt
import logging
from ..config import settings

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

class JWTHandler:
    """JWT token handler for authentication.

    Access and refresh tokens are signed with different secrets, so a leaked
    refresh secret cannot mint access tokens and the reverse.
    """

    def __init__(
        self,
        secret_key: str = None,
        refresh_secret_key: str = None,
        algorithm: str = None,
        issuer: str = None,
        access_token_expire_minutes: int = None,
        refresh_token_expire_days: int = None,
    ):
        self.secret_key = secret_key or settings.jwt_secret_key
        self.refresh_secret_key = refresh_secret_key or settings.jwt_refresh_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.issuer = issuer or settings.jwt_issuer
        self.access_token_expire_minutes = access_token_expire_minutes or settings.jwt_access_token_expire_minutes
        self.refresh_token_expire_days = refresh_token_expire_days or settings.jwt_refresh_token_expire_days

        if self.secret_key == self.refresh_secret_key:
            raise ValueError("Access and refresh tokens need distinct secrets")

    @property
    def access_token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.access_token_expire_minutes)

    @property
    def refresh_token_lifetime(self) -> timedelta:
        return timedelta(days=self.refresh_token_expire_days)

    def _encode(self, user_id: int, token_type: str, lifetime: timedelta, secret: str) -> str:
        now = datetime.utcnow()
        payload = {
            "user_id": user_id,
            "type": token_type,
            "exp": now + lifetime,
            "iat": now,
            "iss": self.issuer,
            "jti": uuid.uuid4().hex
        }

        try:
            token = jwt.encode(payload, secret, algorithm=self.algorithm)
            logger.debug(f"{token_type.title()} token created for user {user_id}")
            return token
        except Exception as e:
            logger.error(f"Failed to create {token_type} token: {e}")
            raise

    def _decode(self, token: str, token_type: str, secret: str) -> Optional[Dict[str, Any]]:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "iss"]}
            )
        except jwt.ExpiredSignatureError:
            logger.debug(f"{token_type.title()} token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid {token_type} token: {e}")
            return None

        # Check token type
        if payload.get("type") != token_type:
            logger.warning(f"Invalid token type for {token_type} token verification")
            return None

        if payload.get("user_id") is None:
            logger.warning(f"{token_type.title()} token carries no subject")
            return None

        return payload

    def create_access_token(self, user_id: int) -> str:
        """Create JWT access token"""
        return self._encode(user_id, ACCESS, self.access_token_lifetime, self.secret_key)

    def create_refresh_token(self, user_id: int) -> str:
        """Create JWT refresh token"""
        return self._encode(user_id, REFRESH, self.refresh_token_lifetime, self.refresh_secret_key)

    def verify_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify and decode JWT access token"""
        return self._decode(token, ACCESS, self.secret_key)

    def verify_refresh_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify and decode JWT refresh token"""
        return self._decode(token, REFRESH, self.refresh_secret_key)

# Global JWT handler instance
jwt_handler = JWTHandler()

import secrets
import string
import logging
import bcrypt

from ..config import settings

logger = logging.getLogger(__name__)

def generate_otp(length: int = 6) -> str:
    """Generate numeric OTP"""

    return ''.join(secrets.choice(string.digits) for _ in range(length))

def hash_password(password: str, rounds: int = None) -> str:
    """Hash password with a fresh bcrypt salt"""

    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

def verify_password(password: str, hashed_password: str) -> bool:
    """Verify password against hash"""

    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Stored password hash is malformed")
        return False

def mask_email(email: str) -> str:
    """Mask email for display (e.g., j***@example.com)"""

    try:
        username, domain = email.split('@')
        if len(username) <= 2:
            masked_username = username[0] + '*'
        else:
            masked_username = username[0] + '*' * (len(username) - 2) + username[-1]
        return f"{masked_username}@{domain}"
    except ValueError:
        return email

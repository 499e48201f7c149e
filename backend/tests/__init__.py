"""
Test Suite for the OTP auth backend

Shared helpers for the unit and API tests. Fixtures live in conftest.py.
"""

from datetime import datetime, timedelta

# Test configuration
TEST_JWT_SECRET = "test-access-secret-not-for-production"
TEST_JWT_REFRESH_SECRET = "test-refresh-secret-not-for-production"
TEST_DATABASE_URL = "sqlite://"

class FixedClock:
    """Controllable replacement for datetime.utcnow"""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now

class RecordingDelivery:
    """OTP delivery that keeps every code it is asked to send"""

    def __init__(self):
        self.sent = []

    def send(self, email, otp, purpose):
        self.sent.append((email, otp, purpose))

    def last_code(self, email):
        for sent_email, otp, _ in reversed(self.sent):
            if sent_email == email:
                return otp
        return None

# Test utilities
class TestDataFactory:
    """Factory for creating test data"""

    __test__ = False

    @staticmethod
    def create_credentials(**kwargs):
        """Create signup/login payload"""
        default_data = {
            "email": "alice@mail.com",
            "password": "SecurePassword123!"
        }
        default_data.update(kwargs)
        return default_data

class SecurityTestHelper:
    """Helper for security testing"""

    @staticmethod
    def generate_jwt_token(payload, secret=TEST_JWT_SECRET, algorithm="HS256"):
        """Generate JWT token for testing"""
        import jwt
        return jwt.encode(payload, secret, algorithm=algorithm)

    @staticmethod
    def decode_unverified(token):
        import jwt
        return jwt.decode(token, options={"verify_signature": False})

__all__ = [
    "TEST_JWT_SECRET",
    "TEST_JWT_REFRESH_SECRET",
    "TEST_DATABASE_URL",
    "FixedClock",
    "RecordingDelivery",
    "TestDataFactory",
    "SecurityTestHelper",
]

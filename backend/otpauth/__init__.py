"""
OTP Auth Backend

Email/password signup confirmed by a one-time password, with JWT access and
refresh tokens.
"""

__version__ = "1.0.0"

# Application metadata
APP_INFO = {
    "title": "OTP Auth API",
    "description": "Email signup with OTP verification and JWT sessions",
    "version": __version__,
    "license_info": {
        "name": "MIT License",
    },
}

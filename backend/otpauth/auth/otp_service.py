from typing import Protocol
import logging

# Operators read codes from this logger until a mail transport is wired in
otp_logger = logging.getLogger("otpauth.otp")

SIGNUP = "signup"
RESEND = "resend"

class OTPDelivery(Protocol):
    def send(self, email: str, otp: str, purpose: str) -> None:
        """Deliver ``otp`` to the owner of ``email``"""

class LoggingOTPDelivery:
    """Surfaces codes on an operator-visible log channel"""

    def __init__(self, logger: logging.Logger = otp_logger):
        self.logger = logger

    def send(self, email: str, otp: str, purpose: str) -> None:
        if purpose == RESEND:
            self.logger.info(f"Resent OTP for {email}: {otp}")
        else:
            self.logger.info(f"Generated OTP for {email}: {otp}")

# Global delivery instance
otp_service = LoggingOTPDelivery()

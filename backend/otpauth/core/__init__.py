"""
Core Module

Shared infrastructure for the auth service: logging setup and the security
event channel.
"""

from .logger import (
    LogFormat,
    SecurityEventType,
    setup_logging,
    log_security_event,
)

__all__ = [
    "LogFormat",
    "SecurityEventType",
    "setup_logging",
    "log_security_event",
]

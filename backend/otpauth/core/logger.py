"""
Logging Module

Configures console or JSON output for the service and provides a structured
channel for security events (signups, OTP checks, logins, token refreshes).
"""

import logging
import sys
import os
import threading
from datetime import datetime
from enum import Enum
from typing import Optional

# Third-party imports
import structlog
from pythonjsonlogger import jsonlogger
import colorlog

class LogFormat(Enum):
    """Log output formats"""
    JSON = "json"
    CONSOLE = "console"

class SecurityEventType(Enum):
    """Security event types for logging"""
    SIGNUP_REQUESTED = "signup_requested"
    SIGNUP_REJECTED = "signup_rejected"
    OTP_RESENT = "otp_resent"
    OTP_VERIFIED = "otp_verified"
    OTP_VERIFICATION_FAILED = "otp_verification_failed"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    TOKEN_REFRESHED = "token_refreshed"
    TOKEN_REFRESH_FAILED = "token_refresh_failed"

class CustomJSONFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields"""

    def __init__(self, app_name: str, app_version: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.app_name = app_name
        self.app_version = app_version

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.utcnow().isoformat()
        log_record['application'] = self.app_name
        log_record['version'] = self.app_version
        log_record['logger'] = record.name
        log_record['thread_name'] = threading.current_thread().name
        log_record['process_id'] = os.getpid()

        if 'level' not in log_record:
            log_record['level'] = record.levelname

def console_formatter() -> logging.Formatter:
    return colorlog.ColoredFormatter(
        '%(log_color)s%(asctime)s [%(levelname)8s] %(name)s: %(message)s%(reset)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    )

def _configure_structlog(log_format: str):
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == LogFormat.JSON.value:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

def setup_logging(settings, stream=None) -> logging.Logger:
    """Configure the root logger from application settings"""

    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream or sys.stdout)
    if settings.log_format == LogFormat.JSON.value:
        handler.setFormatter(CustomJSONFormatter(
            settings.app_name,
            settings.app_version,
            '%(asctime)s %(levelname)s %(name)s %(message)s'
        ))
    else:
        handler.setFormatter(console_formatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    _configure_structlog(settings.log_format)

    return root_logger

security_logger = structlog.get_logger("otpauth.security")

def log_security_event(event_type: SecurityEventType, email: Optional[str] = None, **fields):
    """Record an authentication event on the security channel"""

    log = security_logger.warning if event_type.value.endswith(("failed", "failure", "rejected")) else security_logger.info
    log(event_type.value, email=email, **fields)

"""
Safe Logging with Credential Masking
====================================

Request-facing services (auth, diagram CRUD, the editor) log through this
module so that emails, bearer tokens and passwords never reach the console
or a log file in clear text.

Usage:
    logger = get_safe_logger(__name__)
    logger.info("User logged in", email="jane@example.com")
    # Output: "User logged in | email=j***@***com"
"""

import logging
import os
import re
from typing import Any, Dict, Optional


class PIIProtector:
    """Masks credentials and contact details in log output"""

    # Keys whose values are always masked
    SENSITIVE_FIELDS = {
        'password', 'token', 'secret', 'credential', 'authorization',
        'email', 'api_key',
    }

    EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')

    # header.payload.signature
    JWT_PATTERN = re.compile(r'\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\b')

    BEARER_PATTERN = re.compile(r'(Bearer\s+)\S+', re.IGNORECASE)

    @staticmethod
    def mask_string(value: str, visible_chars: int = 4) -> str:
        """
        Mask a string, showing only the last few characters

        Args:
            value: String to mask
            visible_chars: Number of characters to show at end

        Returns:
            Masked string like "****5678"
        """
        if not value or len(value) <= visible_chars:
            return "****"
        return "*" * (len(value) - visible_chars) + value[-visible_chars:]

    @staticmethod
    def mask_email(email: str) -> str:
        """Mask an email address, e.g. "j***@***com"."""
        if '@' not in email:
            return "***@***"

        local, domain = email.split('@', 1)
        masked_local = local[0] + "***" if len(local) > 1 else "***"
        tld = domain.rsplit('.', 1)[-1]
        return f"{masked_local}@***{tld}"

    @staticmethod
    def mask_dict(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively mask sensitive values in a dictionary."""
        if not isinstance(data, dict):
            return data

        masked = {}
        for key, value in data.items():
            key_lower = key.lower()
            is_sensitive = any(f in key_lower for f in PIIProtector.SENSITIVE_FIELDS)

            if is_sensitive:
                if isinstance(value, str) and 'email' in key_lower:
                    masked[key] = PIIProtector.mask_email(value)
                elif isinstance(value, str):
                    masked[key] = PIIProtector.mask_string(value)
                else:
                    masked[key] = "***"
            elif isinstance(value, dict):
                masked[key] = PIIProtector.mask_dict(value)
            elif isinstance(value, str):
                masked[key] = PIIProtector.sanitize_message(value)
            else:
                masked[key] = value

        return masked

    @staticmethod
    def sanitize_message(message: str) -> str:
        """Remove credentials and emails from a free-text message."""
        message = PIIProtector.BEARER_PATTERN.sub(r"\1***", message)
        message = PIIProtector.JWT_PATTERN.sub("***.***.***", message)
        message = PIIProtector.EMAIL_PATTERN.sub(
            lambda m: PIIProtector.mask_email(m.group(0)), message
        )
        return message


class SafeLogger:
    """
    Logger with automatic masking

    Usage:
        logger = SafeLogger(__name__)
        logger.info("Diagram saved", diagram_id=diagram.id, user=user.email)
    """

    def __init__(self, name: str, log_file: Optional[str] = None):
        """
        Initialize safe logger

        Args:
            name: Logger name (usually __name__)
            log_file: Optional log file path
        """
        self.logger = logging.getLogger(name)

        if log_file:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
            ))
            self.logger.addHandler(file_handler)

    def _format_safe_message(self, message: str, **kwargs) -> str:
        safe_message = PIIProtector.sanitize_message(message)
        if kwargs:
            safe_kwargs = PIIProtector.mask_dict(kwargs)
            kwargs_str = " | ".join(f"{k}={v}" for k, v in safe_kwargs.items())
            return f"{safe_message} | {kwargs_str}"
        return safe_message

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._format_safe_message(message, **kwargs))

    def info(self, message: str, **kwargs):
        self.logger.info(self._format_safe_message(message, **kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format_safe_message(message, **kwargs))

    def error(self, message: str, **kwargs):
        self.logger.error(self._format_safe_message(message, **kwargs))


def configure_logging(level: str = "INFO"):
    """Console logging for the API and scripts."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
    )


def get_safe_logger(name: str, log_file: Optional[str] = None) -> SafeLogger:
    """
    Get a safe logger instance

    Args:
        name: Logger name (use __name__)
        log_file: Optional log file path

    Returns:
        SafeLogger instance
    """
    return SafeLogger(name, log_file)

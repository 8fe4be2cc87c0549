"""
Logging infrastructure for ResumeMatch.

Uses Loguru for structured console and file logging with automatic
rotation, plus a separate audit sink for match decisions.
"""

import sys
from typing import Any

from loguru import logger

from resume_match.utils.config import get_settings


def setup_logging() -> None:
    """
    Configure application-wide logging.

    Sets up console and file logging with formatting, rotation and
    retention taken from ``LoggingSettings``.
    """
    settings = get_settings()
    log_settings = settings.logging

    # Remove default handler
    logger.remove()

    # Security: diagnose=False in production to prevent sensitive data leakage in stack traces
    enable_diagnose = settings.debug and settings.environment == "development"

    if log_settings.console_output:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>",
            level=log_settings.level,
            colorize=True,
            backtrace=True,
            diagnose=enable_diagnose,
        )

    if not log_settings.file_output:
        logger.info(f"Logging initialized - Level: {log_settings.level} (console only)")
        return

    # File handler with rotation
    log_file = log_settings.file_path
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        format=log_settings.format,
        level=log_settings.level,
        rotation=log_settings.rotation,
        retention=log_settings.retention,
        compression="zip",
        backtrace=True,
        diagnose=enable_diagnose,
        enqueue=True,
    )

    # Audit log of scoring decisions
    audit_log_path = log_file.parent / "audit.log"
    logger.add(
        audit_log_path,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[audit_type]} | {message}",
        level="INFO",
        filter=lambda record: "audit_type" in record["extra"],
        rotation="1 week",
        retention="1 year",
        compression="zip",
        enqueue=True,
    )

    logger.info(f"Logging initialized - Level: {log_settings.level}")


def get_logger(name: str) -> Any:
    """
    Get a logger instance with the specified name.

    Args:
        name: The name for the logger (typically __name__)

    Returns:
        A configured logger instance
    """
    return logger.bind(name=name)


def _sanitize_for_logging(data: Any) -> Any:
    """Redact credentials and tokens before they reach a log sink."""
    if isinstance(data, dict):
        sensitive_keys = {
            "password", "passwd", "pwd", "secret", "token", "api_key",
            "apikey", "auth", "credential", "private_key", "access_token",
        }
        return {
            k: "***REDACTED***" if any(s in k.lower() for s in sensitive_keys) else _sanitize_for_logging(v)
            for k, v in data.items()
        }
    elif isinstance(data, list):
        return [_sanitize_for_logging(item) for item in data]
    return data


def audit_log(
    action: str,
    details: dict[str, Any],
    audit_type: str = "DECISION",
) -> None:
    """
    Log an audit entry for a scoring decision.

    Args:
        action: The action being audited (e.g., "match_calculated")
        details: Dictionary of relevant details
        audit_type: Type of audit entry (DECISION, CACHE, ACCESS)
    """
    sanitized_details = _sanitize_for_logging(details)
    logger.bind(audit_type=audit_type).info(f"{action} | {sanitized_details}")


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Usage:
        class MyClass(LoggerMixin):
            def my_method(self):
                self.logger.info("Doing something...")
    """

    @property
    def logger(self) -> Any:
        """Get a logger instance for this class."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger


# Module-level logger for quick access
log = logger


# Auto-setup on import; an unwritable log directory leaves loguru's default sink
try:
    setup_logging()
except OSError as e:
    logger.warning(f"File logging disabled: {e}")

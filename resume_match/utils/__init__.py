"""
Utility modules for ResumeMatch.

This package contains shared utilities used across the application:
- config: Configuration management
- logger: Logging infrastructure
- constants: Application-wide constants
- exceptions: Error taxonomy of the match engine
"""

from resume_match.utils.config import (
    AppSettings,
    get_settings,
    reload_settings,
    ROOT_DIR,
    PACKAGE_DIR,
    DATA_DIR,
)
from resume_match.utils.constants import (
    APP_NAME,
    APP_DISPLAY_NAME,
    VERSION,
    AuditAction,
    DocType,
    DocumentStatus,
    IndexMetric,
    MatchScoreLevel,
    SkillTier,
)
from resume_match.utils.exceptions import (
    DimensionMismatchError,
    DocumentNotFoundError,
    DocumentNotIndexedError,
    MatchEngineError,
    MissingPreconditionError,
    RetrievalError,
)
from resume_match.utils.logger import (
    setup_logging,
    get_logger,
    audit_log,
    LoggerMixin,
    log,
)

__all__ = [
    # Config
    "AppSettings",
    "get_settings",
    "reload_settings",
    "ROOT_DIR",
    "PACKAGE_DIR",
    "DATA_DIR",
    # Constants
    "APP_NAME",
    "APP_DISPLAY_NAME",
    "VERSION",
    "AuditAction",
    "DocType",
    "DocumentStatus",
    "IndexMetric",
    "MatchScoreLevel",
    "SkillTier",
    # Exceptions
    "DimensionMismatchError",
    "DocumentNotFoundError",
    "DocumentNotIndexedError",
    "MatchEngineError",
    "MissingPreconditionError",
    "RetrievalError",
    # Logger
    "setup_logging",
    "get_logger",
    "audit_log",
    "LoggerMixin",
    "log",
]

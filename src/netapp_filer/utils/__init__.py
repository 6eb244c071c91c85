"""Utility modules for logging, auditing and connection retries."""
from .connection import with_retry, connect_with_retry, RETRYABLE_EXCEPTIONS, PERMANENT_EXCEPTIONS
from .logging_config import (
    setup_logging,
    timed,
    timed_section,
    perf_logger,
    PerfStats,
)
from .audit_log import ChangeTracker, ChangeRecord, get_recent_changes, setup_audit_logging

__all__ = [
    "with_retry",
    "connect_with_retry",
    "RETRYABLE_EXCEPTIONS",
    "PERMANENT_EXCEPTIONS",
    "setup_logging",
    "timed",
    "timed_section",
    "perf_logger",
    "PerfStats",
    "ChangeTracker",
    "ChangeRecord",
    "get_recent_changes",
    "setup_audit_logging",
]

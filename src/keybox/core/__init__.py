# Keybox: Core Module - Shared Utilities
#
# - Audit logging
# - Configuration
# - Reader/writer lock
# - SQLite connection helper

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    set_audit_logger,
)
from .config import Settings, load_settings
from .rwlock import ReadWriteLock

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "set_audit_logger",
    # Configuration
    "Settings",
    "load_settings",
    # Concurrency
    "ReadWriteLock",
]

# Keybox: Audit Logging
#
# Append-only structured audit trail of box activity (initialize, add,
# update, remove, clear, failures). One JSON object per line, one file per
# day. Events carry record ids and counts only: never plaintext accounts,
# passwords or the master password.

import logging
import os
import socket
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "keybox.audit"


class EventType(str, Enum):
    """Types of box events that can be audited."""

    BOX_INITIALIZED = "box.initialized"
    BOX_CLEARED = "box.cleared"
    BOX_ERROR = "box.error"

    RECORD_ADDED = "record.added"
    RECORD_UPDATED = "record.updated"
    RECORD_REMOVED = "record.removed"


class EventSeverity(str, Enum):
    """
    Severity levels for audit events.

    - INFO: normal activity
    - ALERT: destructive but requested activity (remove, clear)
    - CRITICAL: an operation failed
    """

    INFO = "info"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for box events.

    Features:
    - Structured JSON lines via structlog
    - Automatic timestamp and event ID
    - OS user / host context on every event
    - Daily log file (audit_YYYY-MM-DD.log)
    """

    def __init__(self, log_dir: Optional[Path] = None, enabled: bool = True):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
            enabled: When False, events are assigned ids but not written
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.enabled = enabled
        self._stdlib_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        self._handler: Optional[logging.Handler] = None

        if self.enabled:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._setup_file_handler()

        self.logger = structlog.wrap_logger(
            self._stdlib_logger,
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
        )

    @property
    def log_file(self) -> Path:
        today = datetime.now().strftime("%Y-%m-%d")
        return self.log_dir / f"audit_{today}.log"

    def _setup_file_handler(self):
        """Attach a file handler for today's log to the audit logger."""
        file_handler = logging.FileHandler(self.log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(message)s"))  # structlog renders

        self._stdlib_logger.addHandler(file_handler)
        self._stdlib_logger.setLevel(logging.INFO)
        self._handler = file_handler

    def close(self):
        """Detach and close this logger's file handler."""
        if self._handler is not None:
            self._stdlib_logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Record an audit event.

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (ids, counts)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())
        if not self.enabled:
            return event_id

        self.logger.info(
            "box_event",
            event_id=event_id,
            event_type=event_type.value,
            severity=severity.value,
            message=message,
            details=details or {},
            user_context=self._get_default_user_context(),
        )
        return event_id

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, platform)."""
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        from .config import load_settings

        settings = load_settings()
        _audit_logger = AuditLogger(log_dir=settings.log_dir, enabled=settings.audit)
    return _audit_logger


def set_audit_logger(logger: Optional[AuditLogger]) -> None:
    """Replace (or reset with None) the global audit logger."""
    global _audit_logger
    _audit_logger = logger

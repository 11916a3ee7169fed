"""
Structured Logging
==================

JSON-structured log lines for process-level lifecycle events, with
secret redaction so bot and gateway tokens never reach a log sink.
"""

import json
import logging
import re
from datetime import UTC, datetime

_SECRET_PATTERNS = re.compile(
    r"(\b\d{6,}:[A-Za-z0-9_-]{20,}|bot\d+:[A-Za-z0-9_-]+|"
    r"Bearer\s+[A-Za-z0-9._~+/=-]+|[?&]token=[^&\s\"]+)",
    re.IGNORECASE,
)


def _redact_secrets(text: str) -> str:
    return _SECRET_PATTERNS.sub("[REDACTED]", text)


class StructuredLogger:
    """
    Structured logger that outputs JSON log lines

    Example output:
    {
        "timestamp": "2026-01-30T10:30:45.123+00:00",
        "level": "INFO",
        "component": "Lifecycle",
        "message": "Runtime bootstrap completed",
        "approvers": 2
    }
    """

    def __init__(self, component: str, logger: logging.Logger | None = None) -> None:
        """
        Initialize structured logger

        Args:
            component: Component name (e.g., 'Lifecycle', 'Gateway')
            logger: Optional existing logger (creates new if not provided)
        """
        self.component = component
        self.logger = logger or logging.getLogger(f"gatekeeper.{component}")

    def _log(self, level: str, message: str, *args, **kwargs) -> None:
        log_method = getattr(self.logger, level.lower())
        if not self.logger.isEnabledFor(getattr(logging, level)):
            return

        if args:
            message = message % args

        log_entry = {
            'timestamp': datetime.now(tz=UTC).isoformat(),
            'level': level,
            'component': self.component,
            'message': _redact_secrets(message),
        }

        for k, v in kwargs.items():
            log_entry[k] = _redact_secrets(v) if isinstance(v, str) else v

        log_method(_redact_secrets(json.dumps(log_entry, default=str)))

    def debug(self, message: str, *args, **kwargs) -> None:
        """Log debug message"""
        self._log('DEBUG', message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        """Log info message"""
        self._log('INFO', message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        """Log warning message"""
        self._log('WARNING', message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        """Log error message"""
        self._log('ERROR', message, *args, **kwargs)


def get_logger(component: str) -> StructuredLogger:
    """
    Get a structured logger for a component

    Args:
        component: Component name

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(component)

"""
Observability Package
=====================

Modules:
--------
- log_setup: root logger configuration from LoggingConfig
- log_rotation: size-based rotation, daily rolling files and cleanup
- alerts: Telegram alert on error spikes
"""

from .alerts import ErrorSpikeAlertHandler, format_alert
from .log_rotation import (
    DailyRotatingLogFileHandler,
    RotatingLogFileHandler,
    get_rotated_path,
    parse_file_size,
    prune_old_rolling_logs,
)
from .log_setup import setup_logging

__all__ = [
    'DailyRotatingLogFileHandler',
    'ErrorSpikeAlertHandler',
    'RotatingLogFileHandler',
    'format_alert',
    'get_rotated_path',
    'parse_file_size',
    'prune_old_rolling_logs',
    'setup_logging',
]

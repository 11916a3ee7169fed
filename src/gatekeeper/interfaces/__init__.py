"""
Interfaces module - Adapters for human-facing channels
======================================================

- base:      NotificationChannel contract used by the approval coordinator
- telegram/: python-telegram-bot implementation, renderers and callback routing
"""

from gatekeeper.interfaces.base import ControlButton, MessageHandle, NotificationChannel

__all__ = [
    'ControlButton',
    'MessageHandle',
    'NotificationChannel',
]

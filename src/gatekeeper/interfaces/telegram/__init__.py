"""
Telegram Interface Package
==========================

Telegram delivery of exec approval prompts and routing of button presses.
"""

from .interface import TelegramApprovalInterface
from .notifier import TelegramNotifier, build_keyboard
from .renderers import TelegramApprovalRenderer

__all__ = [
    'TelegramApprovalInterface',
    'TelegramApprovalRenderer',
    'TelegramNotifier',
    'build_keyboard',
]

"""Configuration loading and validation."""

from gatekeeper.config.settings import (
    ErrorAlertConfig,
    ExecApprovalConfig,
    GatewayConfig,
    LoggingConfig,
    Settings,
    TelegramConfig,
    load_settings,
)

__all__ = [
    'ErrorAlertConfig',
    'ExecApprovalConfig',
    'GatewayConfig',
    'LoggingConfig',
    'Settings',
    'TelegramConfig',
    'load_settings',
]

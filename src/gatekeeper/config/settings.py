"""
Pydantic Settings Configuration
===============================

Type-safe configuration management using Pydantic.
Validates all configuration values at startup and fails fast with clear error messages.
"""

from importlib import metadata
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from gatekeeper.core.exceptions import ConfigurationError


def _project_version() -> str:
    """Resolve the project version from package metadata."""
    try:
        return metadata.version("gatekeeper")
    except metadata.PackageNotFoundError:
        return "0.0.0-dev"


_CHANGEME_PREFIXES = ("changeme", "change-me", "your_", "your-", "placeholder")


def _is_placeholder(value: str) -> bool:
    """Return True if value looks like an unfilled template placeholder."""
    v = value.lower()
    return any(v.startswith(p) or p in v for p in _CHANGEME_PREFIXES)


class ExecApprovalConfig(BaseModel):
    """Which exec approvals this bot forwards, and to whom"""
    enabled: bool = Field(False, description="Forward exec approval requests to Telegram")
    approvers: List[str] = Field(
        default_factory=list,
        description="Telegram user/chat ids that receive prompts and may decide",
    )
    agent_filter: Optional[List[str]] = Field(
        None, description="Only handle requests from these agent ids (exact match)"
    )
    session_filter: Optional[List[str]] = Field(
        None, description="Only handle sessions matching one of these substrings or regexes"
    )

    @field_validator('approvers', mode='before')
    @classmethod
    def normalize_approvers(cls, v: Optional[List[Union[str, int]]]) -> List[str]:
        """Accept numeric Telegram ids and compare everything as strings"""
        if v is None:
            return []
        return [str(a).strip() for a in v if str(a).strip()]

    model_config = ConfigDict(extra='allow')


class TelegramConfig(BaseModel):
    """Telegram bot configuration"""
    bot_token: str = Field(..., description="Telegram bot token from BotFather")
    exec_approvals: ExecApprovalConfig = Field(default_factory=ExecApprovalConfig)

    @field_validator('bot_token')
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate bot token format"""
        if not v or _is_placeholder(v):
            raise ValueError(
                "TELEGRAM bot_token is still set to a placeholder value. "
                "Set a real token from @BotFather."
            )
        if ':' not in v:
            raise ValueError("Bot token must be in format: 123456:ABC-DEF...")
        return v

    model_config = ConfigDict(extra='allow')


class GatewayConfig(BaseModel):
    """Origin gateway connection configuration"""
    url: str = Field("ws://127.0.0.1:18789", description="Gateway WebSocket URL")
    token: Optional[str] = Field(None, description="Gateway auth token")
    request_timeout_seconds: float = Field(30.0, gt=0, le=600, description="Timeout for gateway requests")
    reconnect_initial_delay: float = Field(1.0, gt=0, description="First reconnect backoff in seconds")
    reconnect_max_delay: float = Field(30.0, gt=0, description="Reconnect backoff ceiling in seconds")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("ws://", "wss://")):
            raise ValueError("Gateway url must start with ws:// or wss://")
        return v

    model_config = ConfigDict(extra='allow')


class ErrorAlertConfig(BaseModel):
    """Telegram alert when errors spike in the logs"""
    enabled: bool = Field(False, description="Send an alert on error spikes")
    threshold: int = Field(100, ge=1, description="Errors within the window that trigger an alert")
    window_seconds: int = Field(60, ge=1, description="Sliding window length")
    cooldown_seconds: int = Field(300, ge=0, description="Minimum time between alerts")
    telegram_chat_id: Optional[str] = Field(None, description="Chat that receives alerts")

    @field_validator('telegram_chat_id', mode='before')
    @classmethod
    def normalize_chat_id(cls, v: Optional[Union[str, int]]) -> Optional[str]:
        return None if v is None else str(v)

    model_config = ConfigDict(extra='allow')


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    file: Optional[Path] = Field(None, description="Fixed log file path (daily rolling files in log_dir when unset)")
    log_dir: Optional[Path] = Field(
        Path("/tmp/gatekeeper"),
        description="Directory for gatekeeper-YYYY-MM-DD.log files (console only when null and file unset)",
    )
    max_file_size: str = Field("100MB", description="Rotate the log file past this size")
    max_files_per_day: int = Field(5, ge=1, description="Rotated files kept before logging stops")
    alert_on_error_spike: ErrorAlertConfig = Field(default_factory=ErrorAlertConfig)

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(sorted(valid_levels))}")
        return v_upper

    model_config = ConfigDict(extra='allow')


class Settings(BaseSettings):
    """
    Main application settings with type validation.

    Configuration is loaded from:
    1. YAML config file (if provided)
    2. Environment variables with GATEKEEPER_ prefix (override)
    3. Default values (fallback)

    Environment variable mapping uses double-underscore nesting:
      GATEKEEPER_TELEGRAM__BOT_TOKEN
      GATEKEEPER_GATEWAY__URL
      GATEKEEPER_LOGGING__LEVEL
    """

    telegram: Optional[TelegramConfig] = None
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    version: str = Field(default_factory=_project_version, description="Project version")

    model_config = ConfigDict(
        env_prefix='GATEKEEPER_',
        env_nested_delimiter='__',
        extra='allow',
        validate_assignment=True,
    )

    @property
    def exec_approvals(self) -> ExecApprovalConfig:
        """Approval config, or a disabled default when Telegram is not configured"""
        if self.telegram is None:
            return ExecApprovalConfig()
        return self.telegram.exec_approvals

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "Settings":
        """
        Load settings from a YAML file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If configuration is invalid (a ValueError)
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables only."""
        return cls()

    def validate_required_config(self) -> List[str]:
        """
        Validate that all required configuration is present.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.telegram:
            errors.append("Telegram must be configured (telegram.bot_token)")

        alert = self.logging.alert_on_error_spike
        if alert.enabled and not alert.telegram_chat_id:
            errors.append("logging.alert_on_error_spike.enabled requires telegram_chat_id")

        if self.gateway.reconnect_initial_delay > self.gateway.reconnect_max_delay:
            errors.append("gateway.reconnect_initial_delay must not exceed reconnect_max_delay")

        return errors


def load_settings(config_path: Optional[str | Path] = None) -> Settings:
    """
    Load and validate application settings.

    Args:
        config_path: Optional path to YAML config file

    Returns:
        Validated Settings instance

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path:
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings.from_env()

    errors = settings.validate_required_config()
    if errors:
        raise ConfigurationError(
            "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors),
            details={"errors": errors},
        )

    return settings


__all__ = [
    'Settings',
    'TelegramConfig',
    'ExecApprovalConfig',
    'GatewayConfig',
    'LoggingConfig',
    'ErrorAlertConfig',
    'load_settings',
]

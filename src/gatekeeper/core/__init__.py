"""Core gatekeeper module — canonical public API."""

from gatekeeper.core.event_bus import Event, EventBus, EventType
from gatekeeper.core.exceptions import (
    ConfigurationError,
    ErrorCode,
    GatekeeperError,
    GatewayError,
    GatewayNotConnectedError,
    GatewayRequestError,
    GatewayTimeoutError,
    NotificationError,
    ValidationError,
)
from gatekeeper.core.types import ApprovalDecision, ApprovalRequest, ResolutionRecord

__all__ = [
    "ApprovalDecision",
    "ApprovalRequest",
    "ConfigurationError",
    "ErrorCode",
    "Event",
    "EventBus",
    "EventType",
    "GatekeeperError",
    "GatewayError",
    "GatewayNotConnectedError",
    "GatewayRequestError",
    "GatewayTimeoutError",
    "NotificationError",
    "ResolutionRecord",
    "ValidationError",
]

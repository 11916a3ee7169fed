"""
Custom Exceptions for Gatekeeper
================================

Structured error handling so each operation boundary can decide what to
log and what to report back, based on type rather than parsing strings.

Error Codes:
- 1xxx: Input errors (malformed payloads, configuration)
- 2xxx: Scope errors (request not ours to handle, caller not allowed)
- 3xxx: Delivery errors (notification channel)
- 4xxx: Gateway errors (origin connection and resolve calls)
- 5xxx: System errors (internal, unexpected)
"""

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Structured error codes"""

    # 1xxx: Input Errors
    VALIDATION_ERROR = 1001
    CONFIGURATION_ERROR = 1002

    # 2xxx: Scope Errors
    DISABLED = 2001
    UNCONFIGURED = 2002
    FILTERED = 2003
    UNKNOWN_IDENTIFIER = 2004
    UNAUTHORIZED = 2005

    # 3xxx: Delivery Errors
    SEND_FAILURE = 3001

    # 4xxx: Gateway Errors
    CONNECT_FAILURE = 4001
    RESOLVE_FAILURE = 4002
    TIMEOUT = 4003

    # 5xxx: System Errors
    INTERNAL_ERROR = 5001


class GatekeeperError(Exception):
    """Base exception for all Gatekeeper errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging"""
        return {
            'error_type': self.__class__.__name__,
            'error_code': int(self.error_code),
            'message': self.message,
            'details': self.details
        }


class ValidationError(GatekeeperError):
    """Raised when an inbound payload is malformed"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class ConfigurationError(GatekeeperError, ValueError):
    """Raised when settings fail validation at startup"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class NotificationError(GatekeeperError):
    """Raised when a notification could not be delivered to one recipient"""

    def __init__(self, recipient: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.SEND_FAILURE, details)
        self.recipient = recipient


class GatewayError(GatekeeperError):
    """Base for failures talking to the origin gateway"""


class GatewayNotConnectedError(GatewayError):
    """Raised when a request is issued while the gateway socket is down"""

    def __init__(self, message: str = "Gateway client is not connected"):
        super().__init__(message, ErrorCode.CONNECT_FAILURE)


class GatewayRequestError(GatewayError):
    """Raised when the gateway answers a request with ok=false"""

    def __init__(self, method: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.RESOLVE_FAILURE, details)
        self.method = method


class GatewayTimeoutError(GatewayError):
    """Raised when the gateway does not answer a request in time"""

    def __init__(self, method: str, timeout: float):
        super().__init__(
            f"Gateway request {method} timed out after {timeout}s",
            ErrorCode.TIMEOUT,
            {"method": method, "timeout": timeout},
        )
        self.method = method

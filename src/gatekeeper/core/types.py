"""
Core Type Definitions
=====================

Exec approval payloads as they arrive from the origin gateway.

ApprovalRequest and ResolutionRecord are read-only mirrors of the origin's
own records; the gateway owns them and this service never mutates them.
Timestamps on the wire are epoch milliseconds and are kept that way here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from gatekeeper.core.exceptions import ValidationError

# Telegram caps callback_data at 64 bytes, so buttons carry only a prefix of the id.
SHORT_ID_LENGTH = 8


def short_id(approval_id: str) -> str:
    return approval_id[:SHORT_ID_LENGTH]


class ApprovalDecision(str, Enum):
    """Terminal decision applied to an approval request."""

    ALLOW_ONCE = "allow-once"
    ALLOW_ALWAYS = "allow-always"
    DENY = "deny"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> "ApprovalDecision":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"Unknown approval decision: {value!r}",
                details={"decision": value},
            ) from None


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _timestamp_ms(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key) or 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Approval payload field {key} is not a timestamp", details={"id": payload.get("id"), key: value}
        ) from None


@dataclass(frozen=True)
class ApprovalRequest:
    """A pending exec approval, mirrored from the origin gateway."""

    id: str
    command: str
    created_at_ms: int
    expires_at_ms: int
    cwd: str | None = None
    host: str | None = None
    security: str | None = None
    ask: str | None = None
    agent_id: str | None = None
    resolved_path: str | None = None
    session_key: str | None = None

    @property
    def short_id(self) -> str:
        return short_id(self.id)

    def expires_in_ms(self, now_ms: int) -> int:
        return max(0, self.expires_at_ms - now_ms)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ApprovalRequest":
        """
        Build a request from an ``exec.approval.requested`` event payload.

        Raises:
            ValidationError: If the id or command is missing, or a timestamp is not numeric
        """
        if not isinstance(payload, dict):
            raise ValidationError("Approval request payload must be an object")

        approval_id = payload.get("id")
        body = payload.get("request") or {}
        if not approval_id or not isinstance(approval_id, str):
            raise ValidationError("Approval request payload has no id", details={"payload": payload})
        if not isinstance(body, dict) or not body.get("command"):
            raise ValidationError(
                "Approval request payload has no command", details={"id": approval_id}
            )

        return cls(
            id=approval_id,
            command=str(body["command"]),
            created_at_ms=_timestamp_ms(payload, "createdAtMs"),
            expires_at_ms=_timestamp_ms(payload, "expiresAtMs"),
            cwd=_optional_str(body.get("cwd")),
            host=_optional_str(body.get("host")),
            security=_optional_str(body.get("security")),
            ask=_optional_str(body.get("ask")),
            agent_id=_optional_str(body.get("agentId")),
            resolved_path=_optional_str(body.get("resolvedPath")),
            session_key=_optional_str(body.get("sessionKey")),
        )


@dataclass(frozen=True)
class ResolutionRecord:
    """Terminal decision for a request, as reported by the origin gateway."""

    id: str
    decision: ApprovalDecision
    timestamp_ms: int
    resolved_by: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ResolutionRecord":
        """
        Build a record from an ``exec.approval.resolved`` event payload.

        Raises:
            ValidationError: If the id is missing, the decision is unknown or ts is not numeric
        """
        if not isinstance(payload, dict) or not payload.get("id"):
            raise ValidationError("Approval resolution payload has no id")
        return cls(
            id=str(payload["id"]),
            decision=ApprovalDecision.parse(payload.get("decision")),
            timestamp_ms=_timestamp_ms(payload, "ts"),
            resolved_by=_optional_str(payload.get("resolvedBy")),
        )

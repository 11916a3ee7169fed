"""Tests for approval payload parsing."""

import pytest

from gatekeeper.core.exceptions import ErrorCode, ValidationError
from gatekeeper.core.types import ApprovalDecision, ApprovalRequest, ResolutionRecord, short_id


class TestApprovalRequest:
    def test_from_payload(self):
        request = ApprovalRequest.from_payload(
            {
                "id": "abcdef12-3456-7890",
                "request": {
                    "command": "git push --force",
                    "cwd": "/repo",
                    "host": "gateway",
                    "security": "allowlist",
                    "ask": "on-miss",
                    "agentId": "main",
                    "resolvedPath": "/usr/bin/git",
                    "sessionKey": "agent:main:telegram:42",
                },
                "createdAtMs": 1000,
                "expiresAtMs": 121_000,
            }
        )
        assert request.command == "git push --force"
        assert request.agent_id == "main"
        assert request.session_key == "agent:main:telegram:42"
        assert request.resolved_path == "/usr/bin/git"
        assert request.short_id == "abcdef12"
        assert request.expires_in_ms(1000) == 120_000

    def test_empty_optionals_become_none(self):
        request = ApprovalRequest.from_payload({"id": "a1", "request": {"command": "ls", "cwd": ""}})
        assert request.cwd is None
        assert request.agent_id is None

    def test_expires_in_never_negative(self):
        request = ApprovalRequest(id="a1", command="ls", created_at_ms=0, expires_at_ms=10)
        assert request.expires_in_ms(50) == 0

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            {},
            {"id": "a1"},
            {"id": "a1", "request": {}},
            {"id": "", "request": {"command": "ls"}},
            {"request": {"command": "ls"}},
            {"id": "a1", "request": {"command": "ls"}, "expiresAtMs": "soon"},
            {"id": "a1", "request": {"command": "ls"}, "createdAtMs": [1]},
        ],
    )
    def test_malformed(self, payload):
        with pytest.raises(ValidationError) as exc_info:
            ApprovalRequest.from_payload(payload)
        assert exc_info.value.error_code == ErrorCode.VALIDATION_ERROR


class TestResolutionRecord:
    def test_from_payload(self):
        record = ResolutionRecord.from_payload(
            {"id": "a1", "decision": "allow-always", "resolvedBy": "telegram:111", "ts": 5}
        )
        assert record.decision is ApprovalDecision.ALLOW_ALWAYS
        assert record.resolved_by == "telegram:111"
        assert record.timestamp_ms == 5

    def test_unknown_decision(self):
        with pytest.raises(ValidationError):
            ResolutionRecord.from_payload({"id": "a1", "decision": "maybe"})

    def test_missing_id(self):
        with pytest.raises(ValidationError):
            ResolutionRecord.from_payload({"decision": "deny"})

    def test_non_numeric_timestamp(self):
        with pytest.raises(ValidationError) as exc_info:
            ResolutionRecord.from_payload({"id": "a1", "decision": "deny", "ts": "yesterday"})
        assert exc_info.value.details["ts"] == "yesterday"


def test_short_id():
    assert short_id("0123456789abcdef") == "01234567"
    assert short_id("abc") == "abc"


def test_decision_str():
    assert str(ApprovalDecision.DENY) == "deny"
    assert ApprovalDecision.parse("allow-once") is ApprovalDecision.ALLOW_ONCE

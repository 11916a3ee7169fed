"""
Pytest configuration for Gatekeeper tests — shared approval fixtures.
"""

import time
from typing import Any
from unittest.mock import AsyncMock

import pytest

from gatekeeper.config.settings import ExecApprovalConfig
from gatekeeper.core.types import ApprovalRequest
from gatekeeper.interfaces.base import MessageHandle

# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def approval_config():
    """Enabled config with two approvers and no filters."""
    return ExecApprovalConfig(enabled=True, approvers=["111", "222"])


@pytest.fixture
def make_request():
    """Factory for ApprovalRequest with sensible defaults."""

    def _make(
        approval_id: str = "abcdef12-3456-7890-abcd-ef1234567890",
        command: str = "rm -rf /tmp/build",
        ttl_ms: int = 60_000,
        **kwargs: Any,
    ) -> ApprovalRequest:
        now_ms = int(time.time() * 1000)
        return ApprovalRequest(
            id=approval_id,
            command=command,
            created_at_ms=now_ms,
            expires_at_ms=now_ms + ttl_ms,
            **kwargs,
        )

    return _make


@pytest.fixture
def channel():
    """NotificationChannel double: send returns a handle per recipient."""
    mock = AsyncMock()
    counter = {"n": 0}

    async def _send(recipient, text, controls):
        counter["n"] += 1
        return MessageHandle(recipient=recipient, message_id=counter["n"])

    mock.send.side_effect = _send
    return mock

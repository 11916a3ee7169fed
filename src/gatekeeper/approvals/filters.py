"""
Filters deciding which approval requests this bot instance handles.

Agent filters are exact matches. Session filters match when the session
key contains the pattern literally or the pattern matches as a regular
expression; patterns that do not compile fall back to the literal check.
"""

import logging
import re
from collections.abc import Callable, Sequence
from functools import lru_cache

from gatekeeper.config.settings import ExecApprovalConfig
from gatekeeper.core.types import ApprovalRequest

logger = logging.getLogger(__name__)

SessionMatcher = Callable[[str], bool]


@lru_cache(maxsize=256)
def compile_session_matcher(pattern: str) -> SessionMatcher:
    """Build a matcher for one session filter pattern."""
    try:
        regex = re.compile(pattern)
    except re.error as e:
        logger.debug("Session filter %r is not a valid regex (%s), using substring match", pattern, e)
        return lambda session_key: pattern in session_key
    return lambda session_key: pattern in session_key or regex.search(session_key) is not None


def matches_agent(agent_id: str | None, agent_filter: Sequence[str] | None) -> bool:
    if not agent_filter:
        return True
    return agent_id is not None and agent_id in agent_filter


def matches_session(session_key: str | None, session_filter: Sequence[str] | None) -> bool:
    if not session_filter:
        return True
    if not session_key:
        return False
    return any(compile_session_matcher(p)(session_key) for p in session_filter)


def should_handle(request: ApprovalRequest, config: ExecApprovalConfig) -> bool:
    """Return True if this instance is responsible for notifying about request."""
    if not config.enabled:
        return False
    if not config.approvers:
        return False
    if not matches_agent(request.agent_id, config.agent_filter):
        return False
    if not matches_session(request.session_key, config.session_filter):
        return False
    return True

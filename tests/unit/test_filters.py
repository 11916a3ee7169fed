"""Tests for exec approval request filters."""

from gatekeeper.approvals.filters import (
    compile_session_matcher,
    matches_agent,
    matches_session,
    should_handle,
)
from gatekeeper.config.settings import ExecApprovalConfig


class TestMatchesAgent:
    def test_no_filter_matches_everything(self):
        assert matches_agent(None, None)
        assert matches_agent("main", [])

    def test_exact_match_only(self):
        assert matches_agent("main", ["main", "ops"])
        assert not matches_agent("main-2", ["main"])

    def test_missing_agent_fails_filter(self):
        assert not matches_agent(None, ["main"])


class TestMatchesSession:
    def test_no_filter_matches_everything(self):
        assert matches_session(None, None)
        assert matches_session("agent:main:telegram", [])

    def test_substring(self):
        assert matches_session("agent:main:discord:channel", ["discord"])
        assert not matches_session("agent:main:slack", ["discord"])

    def test_regex(self):
        assert matches_session("agent:ops:prod-7", [r"prod-\d+$"])
        assert not matches_session("agent:ops:staging", [r"^agent:main"])

    def test_invalid_regex_falls_back_to_substring(self):
        assert matches_session("weird[key", ["["])
        assert not matches_session("plain", ["("])

    def test_missing_session_fails_filter(self):
        assert not matches_session(None, ["main"])
        assert not matches_session("", ["main"])

    def test_matcher_is_cached(self):
        assert compile_session_matcher("abc") is compile_session_matcher("abc")


class TestShouldHandle:
    def test_disabled(self, make_request):
        config = ExecApprovalConfig(enabled=False, approvers=["1"])
        assert not should_handle(make_request(), config)

    def test_no_approvers(self, make_request):
        config = ExecApprovalConfig(enabled=True, approvers=[])
        assert not should_handle(make_request(), config)

    def test_no_filters(self, make_request):
        config = ExecApprovalConfig(enabled=True, approvers=["1"])
        assert should_handle(make_request(), config)

    def test_agent_filter(self, make_request):
        config = ExecApprovalConfig(enabled=True, approvers=["1"], agent_filter=["main"])
        assert should_handle(make_request(agent_id="main"), config)
        assert not should_handle(make_request(agent_id="other"), config)
        assert not should_handle(make_request(), config)

    def test_both_filters_must_match(self, make_request):
        config = ExecApprovalConfig(
            enabled=True,
            approvers=["1"],
            agent_filter=["main"],
            session_filter=["discord"],
        )
        assert should_handle(make_request(agent_id="main", session_key="agent:main:discord"), config)
        assert not should_handle(make_request(agent_id="main", session_key="agent:main:slack"), config)
        assert not should_handle(make_request(agent_id="ops", session_key="agent:ops:discord"), config)

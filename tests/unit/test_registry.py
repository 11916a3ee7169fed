"""Tests for the pending approval registry and its short id index."""

import logging
from unittest.mock import MagicMock

from gatekeeper.approvals.registry import PendingEntry, PendingRegistry


class TestPendingRegistry:
    def test_insert_and_lookup(self, make_request):
        registry = PendingRegistry()
        request = make_request()
        assert registry.insert(PendingEntry(request=request))
        assert request.id in registry
        assert len(registry) == 1
        assert registry.resolve_short_id(request.short_id) == request.id
        assert registry.peek(request.id).request is request

    def test_duplicate_insert_rejected(self, make_request):
        registry = PendingRegistry()
        request = make_request()
        first = PendingEntry(request=request)
        registry.insert(first)
        assert not registry.insert(PendingEntry(request=request))
        assert registry.peek(request.id) is first

    def test_lookup_and_remove_is_exactly_once(self, make_request):
        registry = PendingRegistry()
        request = make_request()
        registry.insert(PendingEntry(request=request))

        assert registry.lookup_and_remove(request.id) is not None
        assert registry.lookup_and_remove(request.id) is None
        assert registry.resolve_short_id(request.short_id) is None
        assert len(registry) == 0

    def test_remove_unknown(self):
        assert PendingRegistry().lookup_and_remove("nope") is None

    def test_remove_cancels_timer(self, make_request):
        registry = PendingRegistry()
        timer = MagicMock()
        entry = PendingEntry(request=make_request(), timer=timer)
        registry.insert(entry)

        registry.lookup_and_remove(entry.request.id)
        timer.cancel.assert_called_once()
        assert entry.timer is None

    def test_short_id_collision_last_insert_wins(self, make_request, caplog):
        registry = PendingRegistry()
        first = make_request(approval_id="abcdef12-aaaa")
        second = make_request(approval_id="abcdef12-bbbb")
        registry.insert(PendingEntry(request=first))
        with caplog.at_level(logging.WARNING):
            registry.insert(PendingEntry(request=second))

        assert "collides" in caplog.text
        assert registry.resolve_short_id("abcdef12") == second.id

        # Removing the older request must not unmap the newer one
        registry.lookup_and_remove(first.id)
        assert registry.resolve_short_id("abcdef12") == second.id

        registry.lookup_and_remove(second.id)
        assert registry.resolve_short_id("abcdef12") is None

    def test_clear_cancels_all_timers(self, make_request):
        registry = PendingRegistry()
        timers = [MagicMock(), MagicMock()]
        registry.insert(PendingEntry(request=make_request(approval_id="one-1111"), timer=timers[0]))
        registry.insert(PendingEntry(request=make_request(approval_id="two-2222"), timer=timers[1]))

        dropped = registry.clear()
        assert len(dropped) == 2
        assert len(registry) == 0
        assert registry.ids() == []
        for timer in timers:
            timer.cancel.assert_called_once()


class TestPendingEntry:
    def test_closed_once_final_text_set(self, make_request):
        entry = PendingEntry(request=make_request())
        assert not entry.closed
        entry.final_text = "done"
        assert entry.closed

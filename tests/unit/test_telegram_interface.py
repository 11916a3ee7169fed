"""Tests for routing Telegram button presses to the approval coordinator."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.ext import CallbackQueryHandler

from gatekeeper.core.types import ApprovalDecision
from gatekeeper.interfaces.telegram.interface import TelegramApprovalInterface


def _update(data, user_id=111):
    query = MagicMock()
    query.data = data
    query.answer = AsyncMock()
    query.from_user = MagicMock(id=user_id) if user_id is not None else None
    update = MagicMock()
    update.callback_query = query
    return update


@pytest.fixture
def coordinator():
    mock = MagicMock()
    mock.handle_callback = AsyncMock(return_value=True)
    return mock


class TestCallbackRouting:
    def test_register_adds_prefixed_handler(self, coordinator):
        application = MagicMock()
        TelegramApprovalInterface(coordinator).register(application)

        handler = application.add_handler.call_args.args[0]
        assert isinstance(handler, CallbackQueryHandler)
        assert handler.pattern.match("ea:abcdef12:o")
        assert not handler.pattern.match("menu:settings")

    @pytest.mark.asyncio
    async def test_valid_press_submitted(self, coordinator):
        update = _update("ea:abcdef12:a", user_id=111)
        await TelegramApprovalInterface(coordinator).handle_callback_query(update, MagicMock())

        coordinator.handle_callback.assert_awaited_once_with("abcdef12", ApprovalDecision.ALLOW_ALWAYS, 111)
        update.callback_query.answer.assert_awaited_once_with("Decision submitted: allow-always")

    @pytest.mark.asyncio
    async def test_rejected_press(self, coordinator):
        coordinator.handle_callback.return_value = False
        update = _update("ea:abcdef12:d", user_id=999)
        await TelegramApprovalInterface(coordinator).handle_callback_query(update, MagicMock())

        update.callback_query.answer.assert_awaited_once_with(
            "This approval is no longer pending or you are not an approver"
        )

    @pytest.mark.asyncio
    async def test_malformed_token(self, coordinator):
        update = _update("ea:abcdef12:z")
        await TelegramApprovalInterface(coordinator).handle_callback_query(update, MagicMock())

        coordinator.handle_callback.assert_not_awaited()
        update.callback_query.answer.assert_awaited_once_with("Invalid approval button")

    @pytest.mark.asyncio
    async def test_missing_user_passed_as_none(self, coordinator):
        coordinator.handle_callback.return_value = False
        update = _update("ea:abcdef12:o", user_id=None)
        await TelegramApprovalInterface(coordinator).handle_callback_query(update, MagicMock())

        coordinator.handle_callback.assert_awaited_once_with("abcdef12", ApprovalDecision.ALLOW_ONCE, None)

    @pytest.mark.asyncio
    async def test_coordinator_error_answers_rejection(self, coordinator):
        coordinator.handle_callback.side_effect = RuntimeError("boom")
        update = _update("ea:abcdef12:o")
        await TelegramApprovalInterface(coordinator).handle_callback_query(update, MagicMock())

        update.callback_query.answer.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_without_query(self, coordinator):
        update = MagicMock()
        update.callback_query = None
        await TelegramApprovalInterface(coordinator).handle_callback_query(update, MagicMock())
        coordinator.handle_callback.assert_not_awaited()

"""Tests for TelegramNotifier and keyboard building."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram import InlineKeyboardMarkup
from telegram.error import BadRequest, NetworkError

from gatekeeper.core.exceptions import ErrorCode, NotificationError
from gatekeeper.interfaces.base import ControlButton, MessageHandle
from gatekeeper.interfaces.telegram.notifier import TelegramNotifier, build_keyboard

CONTROLS = [
    ControlButton("✅ Allow once", "ea:abcdef12:o"),
    ControlButton("❌ Deny", "ea:abcdef12:d"),
]


@pytest.fixture
def bot():
    mock = MagicMock()
    mock.send_message = AsyncMock(return_value=MagicMock(message_id=321))
    mock.edit_message_text = AsyncMock()
    return mock


class TestBuildKeyboard:
    def test_single_row(self):
        keyboard = build_keyboard(CONTROLS)
        assert isinstance(keyboard, InlineKeyboardMarkup)
        assert len(keyboard.inline_keyboard) == 1
        row = keyboard.inline_keyboard[0]
        assert [b.text for b in row] == ["✅ Allow once", "❌ Deny"]
        assert [b.callback_data for b in row] == ["ea:abcdef12:o", "ea:abcdef12:d"]

    def test_empty_controls_remove_buttons(self):
        assert len(build_keyboard([]).inline_keyboard) == 0


class TestSend:
    @pytest.mark.asyncio
    async def test_send_returns_handle(self, bot):
        handle = await TelegramNotifier(bot).send("111", "<b>hi</b>", CONTROLS)

        assert handle == MessageHandle(recipient="111", message_id=321)
        kwargs = bot.send_message.await_args.kwargs
        assert kwargs["chat_id"] == "111"
        assert kwargs["text"] == "<b>hi</b>"
        assert kwargs["parse_mode"] == "HTML"
        assert len(kwargs["reply_markup"].inline_keyboard[0]) == 2

    @pytest.mark.asyncio
    async def test_telegram_error_wrapped(self, bot):
        bot.send_message.side_effect = BadRequest("Chat not found")
        with pytest.raises(NotificationError) as exc_info:
            await TelegramNotifier(bot).send("111", "text", CONTROLS)
        assert exc_info.value.error_code == ErrorCode.SEND_FAILURE
        assert "Chat not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_message_id(self, bot):
        bot.send_message.return_value = MagicMock(message_id=None)
        with pytest.raises(NotificationError):
            await TelegramNotifier(bot).send("111", "text", CONTROLS)


class TestEdit:
    @pytest.mark.asyncio
    async def test_edit_replaces_text_and_clears_buttons(self, bot):
        await TelegramNotifier(bot).edit(MessageHandle("222", 9), "done", [])

        kwargs = bot.edit_message_text.await_args.kwargs
        assert kwargs["chat_id"] == "222"
        assert kwargs["message_id"] == 9
        assert kwargs["text"] == "done"
        assert len(kwargs["reply_markup"].inline_keyboard) == 0

    @pytest.mark.asyncio
    async def test_edit_error_wrapped(self, bot):
        bot.edit_message_text.side_effect = NetworkError("timed out")
        with pytest.raises(NotificationError):
            await TelegramNotifier(bot).edit(MessageHandle("222", 9), "done", [])

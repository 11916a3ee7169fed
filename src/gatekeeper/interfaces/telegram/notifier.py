"""Telegram implementation of the NotificationChannel contract."""

import logging

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import TelegramError

from gatekeeper.core.exceptions import NotificationError
from gatekeeper.interfaces.base import ControlButton, MessageHandle, NotificationChannel

logger = logging.getLogger(__name__)


def build_keyboard(controls: list[ControlButton]) -> InlineKeyboardMarkup:
    """One row of inline buttons; an empty list yields an empty keyboard (buttons removed)."""
    row = [InlineKeyboardButton(c.label, callback_data=c.callback_data) for c in controls]
    return InlineKeyboardMarkup([row] if row else [])


class TelegramNotifier(NotificationChannel):
    """Sends and edits approval prompts through a python-telegram-bot Bot."""

    def __init__(self, bot: Bot, parse_mode: str = "HTML") -> None:
        self.bot = bot
        self.parse_mode = parse_mode

    async def send(self, recipient: str, text: str, controls: list[ControlButton]) -> MessageHandle:
        try:
            message = await self.bot.send_message(
                chat_id=recipient,
                text=text,
                parse_mode=self.parse_mode,
                reply_markup=build_keyboard(controls),
            )
        except TelegramError as e:
            raise NotificationError(recipient, f"send failed: {e}") from e

        if message is None or not getattr(message, "message_id", None):
            raise NotificationError(recipient, "send returned no message id")
        return MessageHandle(recipient=recipient, message_id=message.message_id)

    async def edit(self, handle: MessageHandle, text: str, controls: list[ControlButton]) -> None:
        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=handle.recipient,
                message_id=handle.message_id,
                parse_mode=self.parse_mode,
                reply_markup=build_keyboard(controls),
            )
        except TelegramError as e:
            raise NotificationError(handle.recipient, f"edit failed: {e}") from e

"""
Notification Channel Abstract Class
===================================

Defines the contract a human-facing channel must implement so the
approval coordinator can prompt recipients and later rewrite those
prompts once a request is finished.

The coordinator only ever hands a channel compact callback tokens
(at most 64 bytes) as button payloads; the channel decides how to
render buttons natively.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ControlButton:
    """One interactive control: a label and the callback token it sends back."""
    label: str
    callback_data: str


@dataclass(frozen=True)
class MessageHandle:
    """Channel-specific reference to a sent message, used for later edits."""
    recipient: str
    message_id: Any


class NotificationChannel(ABC):
    """
    Abstract base class for approval notification channels.

    Implementations raise NotificationError when delivery to a recipient
    fails; the coordinator isolates and logs those failures per recipient.
    """

    @abstractmethod
    async def send(
        self,
        recipient: str,
        text: str,
        controls: list[ControlButton],
    ) -> MessageHandle:
        """
        Send a prompt to one recipient.

        Args:
            recipient: Channel-specific recipient id (e.g. Telegram chat id)
            text: Rendered message text
            controls: Interactive buttons to attach

        Returns:
            Handle for editing the message later

        Raises:
            NotificationError: If the message could not be delivered
        """

    @abstractmethod
    async def edit(
        self,
        handle: MessageHandle,
        text: str,
        controls: list[ControlButton],
    ) -> None:
        """
        Replace a previously sent message's text and controls.

        An empty controls list removes all buttons.

        Raises:
            NotificationError: If the edit failed
        """

"""Error spike alerting — a logging handler that pings Telegram when errors pile up."""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable

from gatekeeper.config.settings import ErrorAlertConfig

# (chat_id, text) -> None
AlertSender = Callable[[str, str], Awaitable[None]]

logger = logging.getLogger(__name__)


def format_alert(error_count: int, window_seconds: int) -> str:
    return (
        "⚠️ *Gatekeeper Log Alert*\n\n"
        f"Detected {error_count} errors in the last {window_seconds} seconds.\n\n"
        "This may indicate a problem requiring attention."
    )


class ErrorSpikeAlertHandler(logging.Handler):
    """
    Counts ERROR and CRITICAL records in a sliding window. When the count
    reaches the threshold, and the cooldown since the last alert has
    passed, a Telegram alert is scheduled on the running loop without
    waiting for it.
    """

    def __init__(
        self,
        config: ErrorAlertConfig,
        sender: AlertSender,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(level=logging.ERROR)
        self.config = config
        self.sender = sender
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._last_alert_at: float | None = None
        self._tasks: set[asyncio.Task] = set()

    def track_error(self, now: float) -> bool:
        """Record one error at time now; return True if an alert is due."""
        if not self.config.enabled:
            return False

        self._timestamps.append(now)
        cutoff = now - self.config.window_seconds
        while self._timestamps and self._timestamps[0] < cutoff:
            self._timestamps.popleft()

        if len(self._timestamps) < self.config.threshold:
            return False
        if self._last_alert_at is not None and now - self._last_alert_at <= self.config.cooldown_seconds:
            return False
        self._last_alert_at = now
        return True

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.levelno < logging.ERROR:
                return
            if self.track_error(self._clock()):
                self._dispatch(format_alert(self.config.threshold, self.config.window_seconds))
        except Exception:
            self.handleError(record)

    def _dispatch(self, text: str) -> None:
        chat_id = self.config.telegram_chat_id
        if not chat_id:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (e.g. logging during interpreter shutdown)
            return
        task = loop.create_task(self._send(chat_id, text))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(self, chat_id: str, text: str) -> None:
        try:
            await self.sender(chat_id, text)
        except Exception as e:
            # WARNING stays below this handler's level, so it cannot re-trigger an alert
            logger.warning("Error spike alert could not be sent: %s", e)

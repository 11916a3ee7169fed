"""
Telegram Interface - Inbound side of exec approvals
===================================================

Routes inline-button presses carrying exec approval callback data to the
coordinator. Other callback data on the same bot is left for other
handlers; the exec approval handler only claims tokens with its prefix.
"""

import logging

from telegram import Update
from telegram.ext import Application, CallbackQueryHandler, ContextTypes

from gatekeeper.approvals import callback_codec
from gatekeeper.approvals.coordinator import ExecApprovalCoordinator

logger = logging.getLogger(__name__)

CALLBACK_PATTERN = rf"^{callback_codec.CALLBACK_PREFIX}:"


class TelegramApprovalInterface:
    """
    Telegram adapter for approval decisions

    Dependencies (injected via constructor):
    - coordinator: the ExecApprovalCoordinator that owns pending approvals
    """

    def __init__(self, coordinator: ExecApprovalCoordinator) -> None:
        self.coordinator = coordinator

    def register(self, application: Application) -> None:
        """Attach the callback handler to a python-telegram-bot Application"""
        application.add_handler(
            CallbackQueryHandler(self.handle_callback_query, pattern=CALLBACK_PATTERN)
        )
        logger.info("Exec approval callback handler registered")

    async def handle_callback_query(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
    ) -> None:
        """
        Handle an Allow once / Always allow / Deny button press.

        The prompt itself is only rewritten once the gateway reports the
        resolution; here we just acknowledge the press.
        """
        query = update.callback_query
        if query is None:
            return

        parsed = callback_codec.decode(query.data)
        if parsed is None:
            logger.debug("Ignoring malformed exec approval callback: %s", query.data)
            await query.answer("Invalid approval button")
            return

        user_id = query.from_user.id if query.from_user else None
        try:
            submitted = await self.coordinator.handle_callback(parsed.short_id, parsed.decision, user_id)
        except Exception as e:
            logger.error("Error handling exec approval callback: %s", e, exc_info=True)
            submitted = False

        if submitted:
            await query.answer(f"Decision submitted: {parsed.decision.value}")
        else:
            await query.answer("This approval is no longer pending or you are not an approver")

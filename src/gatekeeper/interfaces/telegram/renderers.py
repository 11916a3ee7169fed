"""
Exec Approval Renderers for Telegram
====================================

Formats approval prompts and their final states as Telegram HTML, and
builds the Allow once / Always allow / Deny button row.
"""

import html
import time

from gatekeeper.approvals import callback_codec
from gatekeeper.core.types import ApprovalDecision, ApprovalRequest, ResolutionRecord
from gatekeeper.interfaces.base import ControlButton

PROMPT_COMMAND_PREVIEW = 500
FINAL_COMMAND_PREVIEW = 300

_DECISION_LABELS = {
    ApprovalDecision.ALLOW_ONCE: "Allowed (once)",
    ApprovalDecision.ALLOW_ALWAYS: "Allowed (always)",
    ApprovalDecision.DENY: "Denied",
}


def escape(text: str) -> str:
    return html.escape(text, quote=False)


def _preview(command: str, limit: int) -> str:
    return f"{command[:limit]}..." if len(command) > limit else command


class TelegramApprovalRenderer:
    """Renders approval messages in Telegram's HTML parse mode."""

    parse_mode = "HTML"

    def prompt(self, request: ApprovalRequest, now_ms: int | None = None) -> str:
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        expires_in = (request.expires_in_ms(now_ms) + 500) // 1000

        message = "<b>Exec Approval Required</b>\n\nA command needs your approval.\n\n"
        message += (
            f"<b>Command:</b>\n<code>{escape(_preview(request.command, PROMPT_COMMAND_PREVIEW))}</code>\n"
        )
        if request.cwd:
            message += f"\n<b>Working Directory:</b> {escape(request.cwd)}"
        if request.host:
            message += f"\n<b>Host:</b> {escape(request.host)}"
        if request.agent_id:
            message += f"\n<b>Agent:</b> {escape(request.agent_id)}"
        message += f"\n\n<i>Expires in {expires_in}s | ID: {escape(request.short_id)}</i>"
        return message

    def resolved(self, request: ApprovalRequest, resolution: ResolutionRecord) -> str:
        emoji = "❌" if resolution.decision == ApprovalDecision.DENY else "✅"
        message = f"<b>{emoji} Exec Approval: {_DECISION_LABELS[resolution.decision]}</b>\n\n"
        if resolution.resolved_by:
            message += f"Resolved by {escape(resolution.resolved_by)}\n\n"
        message += (
            f"<b>Command:</b>\n<code>{escape(_preview(request.command, FINAL_COMMAND_PREVIEW))}</code>\n"
        )
        message += f"\n<i>ID: {escape(request.short_id)}</i>"
        return message

    def expired(self, request: ApprovalRequest) -> str:
        message = "<b>⏰ Exec Approval: Expired</b>\n\n"
        message += "This approval request has expired.\n\n"
        message += (
            f"<b>Command:</b>\n<code>{escape(_preview(request.command, FINAL_COMMAND_PREVIEW))}</code>\n"
        )
        message += f"\n<i>ID: {escape(request.short_id)}</i>"
        return message

    def controls(self, request: ApprovalRequest) -> list[ControlButton]:
        return [
            ControlButton("✅ Allow once", callback_codec.encode(request.id, ApprovalDecision.ALLOW_ONCE)),
            ControlButton(
                "✔️ Always allow", callback_codec.encode(request.id, ApprovalDecision.ALLOW_ALWAYS)
            ),
            ControlButton("❌ Deny", callback_codec.encode(request.id, ApprovalDecision.DENY)),
        ]

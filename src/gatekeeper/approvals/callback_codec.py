"""
Callback data codec for exec approval buttons.

Telegram limits callback_data to 64 bytes, so buttons carry a compact
token instead of the full approval id:

    ea:<8-char short id>:<tag>

where tag is ``o`` (allow-once), ``a`` (allow-always) or ``d`` (deny).
"""

from dataclasses import dataclass

from gatekeeper.core.types import ApprovalDecision, short_id

CALLBACK_PREFIX = "ea"
MAX_CALLBACK_BYTES = 64

_DECISION_TAGS: dict[ApprovalDecision, str] = {
    ApprovalDecision.ALLOW_ONCE: "o",
    ApprovalDecision.ALLOW_ALWAYS: "a",
    ApprovalDecision.DENY: "d",
}
_TAG_DECISIONS: dict[str, ApprovalDecision] = {tag: d for d, tag in _DECISION_TAGS.items()}


@dataclass(frozen=True)
class CallbackData:
    short_id: str
    decision: ApprovalDecision


def encode(approval_id: str, decision: ApprovalDecision | str) -> str:
    """Build the callback token for one button of an approval prompt."""
    tag = _DECISION_TAGS[ApprovalDecision(decision)]
    return f"{CALLBACK_PREFIX}:{short_id(approval_id)}:{tag}"


def decode(data: str | None) -> CallbackData | None:
    """
    Parse a callback token back into its short id and decision.

    Returns None for anything that is not a well-formed exec approval token.
    """
    if not is_recognized(data):
        return None
    parts = data.split(":")
    if len(parts) != 3:
        return None
    _, sid, tag = parts
    decision = _TAG_DECISIONS.get(tag)
    if not sid or decision is None:
        return None
    return CallbackData(short_id=sid, decision=decision)


def is_recognized(data: str | None) -> bool:
    """True if the callback data belongs to exec approvals."""
    return isinstance(data, str) and data.startswith(f"{CALLBACK_PREFIX}:")

"""
Exec Approvals
==============

Forwarding of origin exec approval requests to human approvers:

1. The gateway publishes ``exec.approval.requested`` on the EventBus
2. The coordinator filters it, prompts every approver and arms an expiry timer
3. A button press is forwarded to the gateway as ``exec.approval.resolve``
4. The gateway's ``exec.approval.resolved`` event (or the local timer)
   settles the request and rewrites every prompt exactly once
"""

from gatekeeper.approvals.callback_codec import CallbackData, decode, encode, is_recognized
from gatekeeper.approvals.coordinator import ExecApprovalCoordinator
from gatekeeper.approvals.filters import should_handle
from gatekeeper.approvals.registry import PendingEntry, PendingRegistry

__all__ = [
    'CallbackData',
    'ExecApprovalCoordinator',
    'PendingEntry',
    'PendingRegistry',
    'decode',
    'encode',
    'is_recognized',
    'should_handle',
]

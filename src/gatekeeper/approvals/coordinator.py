"""Exec approval coordinator — fans approval prompts out to approvers and settles them exactly once."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, Protocol

from gatekeeper.approvals.filters import should_handle
from gatekeeper.approvals.registry import PendingEntry, PendingRegistry
from gatekeeper.config.settings import ExecApprovalConfig
from gatekeeper.core.event_bus import Event, EventBus, EventType
from gatekeeper.core.exceptions import ErrorCode, GatekeeperError, NotificationError, ValidationError
from gatekeeper.core.types import ApprovalDecision, ApprovalRequest, ResolutionRecord
from gatekeeper.interfaces.base import ControlButton, MessageHandle, NotificationChannel

if TYPE_CHECKING:
    from gatekeeper.gateway.client import GatewayClient

logger = logging.getLogger(__name__)

RESOLVE_METHOD = "exec.approval.resolve"


class ApprovalRenderer(Protocol):
    def prompt(self, request: ApprovalRequest) -> str: ...

    def resolved(self, request: ApprovalRequest, resolution: ResolutionRecord) -> str: ...

    def expired(self, request: ApprovalRequest) -> str: ...

    def controls(self, request: ApprovalRequest) -> list[ControlButton]: ...


class ExecApprovalCoordinator:
    """
    Tracks outstanding exec approvals for one notification channel.

    Requests come in from the gateway, are filtered, prompted to every
    approver and armed with an expiry timer. Whichever of the gateway's
    "resolved" event or the local timer removes the registry entry first
    finalizes the prompts; the other becomes a no-op. Button presses are
    forwarded to the gateway, never applied locally: the resulting
    "resolved" event is the single source of truth.
    """

    def __init__(
        self,
        config: ExecApprovalConfig,
        channel: NotificationChannel,
        renderer: ApprovalRenderer,
        event_bus: EventBus,
        gateway: GatewayClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.channel = channel
        self.renderer = renderer
        self.event_bus = event_bus
        self.gateway = gateway
        self._clock = clock
        self.registry = PendingRegistry()
        self._tasks: set[asyncio.Task] = set()
        self._running = False
        self._skipped: dict[ErrorCode, int] = {}

    @property
    def is_active(self) -> bool:
        return self.config.enabled and bool(self.config.approvers)

    def should_handle(self, request: ApprovalRequest) -> bool:
        return should_handle(request, self.config)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def start(self) -> None:
        if self._running:
            return
        if not self.config.enabled:
            self._skip(ErrorCode.DISABLED, "Exec approvals disabled")
            return
        if not self.config.approvers:
            self._skip(ErrorCode.UNCONFIGURED, "Exec approvals: no approvers configured")
            return

        self._running = True
        self.event_bus.subscribe(EventType.APPROVAL_REQUESTED, self._on_requested)
        self.event_bus.subscribe(EventType.APPROVAL_RESOLVED, self._on_resolved)
        if self.gateway is not None:
            await self.gateway.start()
        logger.info("Exec approval coordinator started (%d approvers)", len(self.config.approvers))

    async def stop(self) -> None:
        """Drop pending approvals and abandon in-flight sends and edits without waiting on them."""
        if not self._running:
            return
        self._running = False

        # Timers go first so none can fire into cleared state
        dropped = self.registry.clear()

        self.event_bus.unsubscribe(EventType.APPROVAL_REQUESTED, self._on_requested)
        self.event_bus.unsubscribe(EventType.APPROVAL_RESOLVED, self._on_resolved)

        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        if self.gateway is not None:
            await self.gateway.stop()
        logger.info("Exec approval coordinator stopped (%d pending dropped)", len(dropped))

    # ========================================================================
    # GATEWAY EVENTS
    # ========================================================================

    async def _on_requested(self, event: Event) -> None:
        try:
            request = ApprovalRequest.from_payload(event.data)
        except ValidationError as e:
            logger.warning("Dropping malformed approval request: %s", e.message)
            return
        self.handle_requested(request)

    async def _on_resolved(self, event: Event) -> None:
        try:
            resolution = ResolutionRecord.from_payload(event.data)
        except ValidationError as e:
            logger.warning("Dropping malformed approval resolution: %s", e.message)
            return
        self.handle_resolved(resolution)

    def handle_requested(self, request: ApprovalRequest) -> bool:
        """
        Accept a request: register it, arm its expiry timer and start
        prompting approvers in the background.

        Returns False if the request was filtered out or is already pending.
        """
        if not self.should_handle(request):
            self._skip(ErrorCode.FILTERED, "Approval %s not handled by this instance", request.id)
            return False

        entry = PendingEntry(request=request)
        if not self.registry.insert(entry):
            logger.debug("Approval %s is already pending", request.id)
            return False

        delay = request.expires_in_ms(self._now_ms()) / 1000
        entry.timer = asyncio.get_running_loop().call_later(delay, self.handle_timeout, request.id)
        logger.debug("Received approval %s (expires in %.0fs)", request.id, delay)

        self._spawn(self._notify_all(entry), f"approval-notify-{request.short_id}")
        return True

    def handle_resolved(self, resolution: ResolutionRecord) -> bool:
        """
        Apply a gateway resolution. Returns False if the request was not
        pending (already resolved, expired or never ours).
        """
        entry = self.registry.lookup_and_remove(resolution.id)
        if entry is None:
            return False
        logger.debug("Resolved %s with %s", resolution.id, resolution.decision.value)
        self._finish(entry, self.renderer.resolved(entry.request, resolution))
        return True

    def handle_timeout(self, approval_id: str) -> bool:
        """Expire a request whose timer fired. Returns False if it was already settled."""
        entry = self.registry.lookup_and_remove(approval_id)
        if entry is None:
            return False
        logger.debug("Timeout for %s", approval_id)
        self._finish(entry, self.renderer.expired(entry.request))
        self._spawn(
            self.event_bus.publish(EventType.APPROVAL_EXPIRED, {"id": approval_id}),
            f"approval-expired-{entry.request.short_id}",
        )
        return True

    # ========================================================================
    # NOTIFICATION FAN-OUT
    # ========================================================================

    async def _notify_all(self, entry: PendingEntry) -> None:
        text = self.renderer.prompt(entry.request)
        controls = self.renderer.controls(entry.request)
        await asyncio.gather(
            *(self._notify_one(entry, recipient, text, controls) for recipient in self.config.approvers)
        )

    async def _notify_one(
        self,
        entry: PendingEntry,
        recipient: str,
        text: str,
        controls: list[ControlButton],
    ) -> None:
        approval_id = entry.request.id
        try:
            handle = await self.channel.send(recipient, text, controls)
        except NotificationError as e:
            logger.error("Failed to notify %s about %s: %s", recipient, approval_id, e.message)
            return
        except Exception as e:
            logger.error("Failed to notify %s about %s: %s", recipient, approval_id, e, exc_info=True)
            return

        if entry.closed:
            # Settled while this send was in flight
            await self._edit(handle, entry.final_text)
            return
        entry.messages[recipient] = handle
        logger.debug("Sent approval %s to %s", approval_id, recipient)

    def _finish(self, entry: PendingEntry, text: str) -> None:
        entry.final_text = text
        handles = list(entry.messages.values())
        if handles:
            self._spawn(self._update_messages(handles, text), f"approval-final-{entry.request.short_id}")

    async def _update_messages(self, handles: list[MessageHandle], text: str) -> None:
        await asyncio.gather(*(self._edit(handle, text) for handle in handles))

    async def _edit(self, handle: MessageHandle, text: str) -> None:
        try:
            await self.channel.edit(handle, text, [])
        except NotificationError as e:
            logger.error("Failed to update message for %s: %s", handle.recipient, e.message)
        except Exception as e:
            logger.error("Failed to update message for %s: %s", handle.recipient, e, exc_info=True)

    # ========================================================================
    # USER DECISIONS
    # ========================================================================

    async def handle_callback(
        self,
        short_id: str,
        decision: ApprovalDecision,
        user_id: str | int | None,
    ) -> bool:
        """
        Forward a button press to the gateway.

        Returns True only if the gateway acknowledged the resolve call.
        Unknown short ids and non-approvers are ignored.
        """
        approval_id = self.registry.resolve_short_id(short_id)
        if approval_id is None:
            self._skip(ErrorCode.UNKNOWN_IDENTIFIER, "Unknown approval short id %s", short_id)
            return False

        if user_id is None or str(user_id) not in self.config.approvers:
            self._skip(ErrorCode.UNAUTHORIZED, "User %s is not an approver", user_id)
            return False

        return await self.resolve_approval(approval_id, decision)

    async def resolve_approval(self, approval_id: str, decision: ApprovalDecision) -> bool:
        """Ask the gateway to commit a decision. Local state is left to the resolved event."""
        if self.gateway is None or not self.gateway.is_connected:
            logger.error("Cannot resolve %s: gateway client not connected", approval_id)
            return False

        logger.debug("Resolving %s with %s", approval_id, decision.value)
        try:
            await self.gateway.request(RESOLVE_METHOD, {"id": approval_id, "decision": decision.value})
        except GatekeeperError as e:
            logger.error("Resolve failed for %s: %s", approval_id, e.message)
            return False
        logger.debug("Resolved %s successfully", approval_id)
        return True

    def get_full_id(self, short_id: str) -> str | None:
        return self.registry.resolve_short_id(short_id)

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _skip(self, code: ErrorCode, message: str, *args: Any) -> None:
        self._skipped[code] = self._skipped.get(code, 0) + 1
        logger.debug("[%s] " + message, code.name, *args)

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for in-flight sends and edits to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def get_stats(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "pending": len(self.registry),
            "in_flight_tasks": len(self._tasks),
            "approvers": len(self.config.approvers),
            "skipped": {code.name: count for code, count in self._skipped.items()},
        }

"""
Gateway Client - WebSocket connection to the origin approval gateway
====================================================================

Keeps a single long-lived WebSocket to the gateway, publishes the
approval events it receives on the EventBus, and issues
request/response calls such as ``exec.approval.resolve``.

Wire frames are JSON objects:
    request:  {"type": "req", "id": "...", "method": "...", "params": {...}}
    response: {"type": "res", "id": "...", "ok": true, "payload": {...}}
              {"type": "res", "id": "...", "ok": false, "error": {"message": "..."}}
    event:    {"type": "event", "event": "exec.approval.requested", "payload": {...}}

The connection is re-established with exponential backoff until stop()
is called. Requests issued while disconnected fail immediately.
"""

import asyncio
import json
import logging
import uuid
from typing import Any

import aiohttp

from gatekeeper.core.event_bus import EventBus, EventType
from gatekeeper.core.exceptions import (
    GatewayError,
    GatewayNotConnectedError,
    GatewayRequestError,
    GatewayTimeoutError,
)

logger = logging.getLogger(__name__)

CLIENT_NAME = "gatekeeper"
CLIENT_DISPLAY_NAME = "Telegram Exec Approvals"
CLIENT_MODE = "backend"
APPROVAL_SCOPES = ["operator.approvals"]


class GatewayClient:
    """Reconnecting JSON-over-WebSocket client for the approval gateway."""

    def __init__(
        self,
        url: str,
        event_bus: EventBus,
        token: str | None = None,
        request_timeout: float = 30.0,
        reconnect_initial_delay: float = 1.0,
        reconnect_max_delay: float = 30.0,
        scopes: list[str] | None = None,
    ) -> None:
        self.url = url
        self.event_bus = event_bus
        self.token = token
        self.request_timeout = request_timeout
        self.reconnect_initial_delay = reconnect_initial_delay
        self.reconnect_max_delay = reconnect_max_delay
        self.scopes = scopes or list(APPROVAL_SCOPES)

        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._pending: dict[str, tuple[str, asyncio.Future]] = {}
        self._task: asyncio.Task | None = None
        self._running = False
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._session = aiohttp.ClientSession()
        self._task = asyncio.create_task(self._run(), name="gateway-client")
        logger.info("Gateway client started (%s)", self.url)

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._ws is not None:
            await self._ws.close()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._fail_pending(GatewayNotConnectedError("Gateway client stopped"))
        if self._session is not None:
            await self._session.close()
            self._session = None
        self._connected = False
        logger.info("Gateway client stopped")

    # ========================================================================
    # CONNECTION LOOP
    # ========================================================================

    async def _run(self) -> None:
        delay = self.reconnect_initial_delay
        while self._running:
            try:
                await self._connect_and_read()
                delay = self.reconnect_initial_delay
            except asyncio.CancelledError:
                raise
            except (aiohttp.ClientError, GatewayError, OSError, asyncio.TimeoutError) as e:
                logger.error("Gateway connect error: %s", e)
            except Exception as e:
                logger.error("Unexpected gateway client error: %s", e, exc_info=True)

            if not self._running:
                break
            logger.debug("Reconnecting to gateway in %.1fs", delay)
            await asyncio.sleep(delay)
            delay = min(delay * 2, self.reconnect_max_delay)

    async def _connect_and_read(self) -> None:
        async with self._session.ws_connect(self.url, heartbeat=30) as ws:
            self._ws = ws
            reader = asyncio.create_task(self._read_loop(ws), name="gateway-reader")
            try:
                await self._hello(ws)
                self._connected = True
                logger.info("Connected to gateway")
                await self.event_bus.publish(EventType.GATEWAY_CONNECTED, {"url": self.url})
                await reader
            finally:
                was_connected = self._connected
                self._connected = False
                self._ws = None
                if not reader.done():
                    reader.cancel()
                self._fail_pending(GatewayNotConnectedError("Gateway connection closed"))
                if was_connected:
                    logger.info("Gateway connection closed (code=%s)", ws.close_code)
                    await self.event_bus.publish(
                        EventType.GATEWAY_DISCONNECTED, {"code": ws.close_code}
                    )

    async def _hello(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        params = {
            "client": {
                "name": CLIENT_NAME,
                "displayName": CLIENT_DISPLAY_NAME,
                "mode": CLIENT_MODE,
            },
            "scopes": self.scopes,
        }
        if self.token:
            params["auth"] = {"token": self.token}
        await self._send_request(ws, "connect", params)

    async def _read_loop(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    frame = json.loads(msg.data)
                except json.JSONDecodeError:
                    logger.warning("Ignoring non-JSON gateway frame")
                    continue
                await self.handle_frame(frame)
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error("Gateway socket error: %s", ws.exception())
                break
        # Unblock a handshake still waiting on a socket that just closed
        self._fail_pending(GatewayNotConnectedError("Gateway connection closed"))

    # ========================================================================
    # FRAMES
    # ========================================================================

    async def handle_frame(self, frame: Any) -> None:
        """Dispatch one decoded frame: settle a pending request or publish an event."""
        if not isinstance(frame, dict):
            logger.warning("Ignoring malformed gateway frame")
            return

        frame_type = frame.get("type")
        if frame_type == "res":
            self._settle(frame)
        elif frame_type == "event":
            event_type = EventType.from_wire(str(frame.get("event", "")))
            if event_type not in (EventType.APPROVAL_REQUESTED, EventType.APPROVAL_RESOLVED):
                return
            payload = frame.get("payload")
            await self.event_bus.publish(event_type, payload if isinstance(payload, dict) else {})

    def _settle(self, frame: dict[str, Any]) -> None:
        entry = self._pending.pop(str(frame.get("id")), None)
        if entry is None:
            return
        method, future = entry
        if future.done():
            return
        if frame.get("ok"):
            future.set_result(frame.get("payload"))
        else:
            error = frame.get("error") or {}
            message = error.get("message") if isinstance(error, dict) else str(error)
            future.set_exception(
                GatewayRequestError(
                    method, message or "request failed", details={"error": error}
                )
            )

    def _fail_pending(self, exc: Exception) -> None:
        pending, self._pending = self._pending, {}
        for _, future in pending.values():
            if not future.done():
                future.set_exception(exc)

    # ========================================================================
    # REQUESTS
    # ========================================================================

    async def request(self, method: str, params: dict[str, Any]) -> Any:
        """
        Issue a request and wait for the gateway's answer.

        Raises:
            GatewayNotConnectedError: If the socket is not connected
            GatewayRequestError: If the gateway answers ok=false
            GatewayTimeoutError: If no answer arrives in time
        """
        if not self._connected or self._ws is None:
            raise GatewayNotConnectedError()
        return await self._send_request(self._ws, method, params)

    async def _send_request(
        self, ws: aiohttp.ClientWebSocketResponse, method: str, params: dict[str, Any]
    ) -> Any:
        request_id = str(uuid.uuid4())
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = (method, future)
        try:
            try:
                await ws.send_json(
                    {"type": "req", "id": request_id, "method": method, "params": params}
                )
            except (aiohttp.ClientError, ConnectionError) as e:
                raise GatewayNotConnectedError(f"Gateway send failed: {e}") from e
            return await asyncio.wait_for(future, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            raise GatewayTimeoutError(method, self.request_timeout) from None
        finally:
            self._pending.pop(request_id, None)

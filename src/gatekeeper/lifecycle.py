"""Lifecycle Management — bootstrap, signal handling, and graceful shutdown for Gatekeeper."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from telegram import Update
from telegram.ext import Application

from gatekeeper.approvals.coordinator import ExecApprovalCoordinator
from gatekeeper.config.settings import Settings, load_settings
from gatekeeper.core.event_bus import EventBus
from gatekeeper.core.structured_logger import get_logger
from gatekeeper.gateway.client import GatewayClient
from gatekeeper.interfaces.telegram import (
    TelegramApprovalInterface,
    TelegramApprovalRenderer,
    TelegramNotifier,
)
from gatekeeper.observability.log_setup import setup_logging

logger = get_logger("Lifecycle")


class ShutdownPriority(Enum):
    """Shutdown priority levels (higher = shuts down first)."""

    CRITICAL = 100
    HIGH = 75
    NORMAL = 50
    LOW = 25


@dataclass
class ShutdownCallback:
    """Shutdown callback with priority."""

    callback: Callable
    priority: ShutdownPriority
    name: str
    timeout: float | None = None


@dataclass
class RuntimeContext:
    """DI container holding all initialized Gatekeeper components."""

    settings: Settings
    application: Application
    event_bus: EventBus
    gateway: GatewayClient
    coordinator: ExecApprovalCoordinator
    shutdown_callbacks: list[ShutdownCallback] = field(default_factory=list)


def build_application(settings: Settings) -> Application:
    return Application.builder().token(settings.telegram.bot_token).build()


class Runtime:
    """Runtime orchestrator — bootstrap, signal handling, graceful shutdown."""

    def __init__(
        self,
        config_path: str | None = None,
        shutdown_timeout: float = 30.0,
        application_factory: Callable[[Settings], Application] = build_application,
    ):
        self.config_path = config_path
        self.shutdown_timeout = shutdown_timeout
        self.application_factory = application_factory
        self.context: RuntimeContext | None = None
        self._shutdown_event = asyncio.Event()
        self._initialized = False
        self._started = False
        self._shutdown_in_progress = False

    async def bootstrap(self) -> RuntimeContext:
        """Load settings, configure logging and wire all components."""
        if self._initialized:
            logger.warning("Runtime already initialized")
            return self.context

        settings = load_settings(self.config_path)
        application = self.application_factory(settings)
        bot = application.bot

        async def send_alert(chat_id: str, text: str) -> None:
            await bot.send_message(chat_id=chat_id, text=text, parse_mode="Markdown")

        setup_logging(settings.logging, alert_sender=send_alert)
        logger.info("Bootstrapping Gatekeeper runtime", version=settings.version)

        event_bus = EventBus()
        gateway = GatewayClient(
            url=settings.gateway.url,
            event_bus=event_bus,
            token=settings.gateway.token,
            request_timeout=settings.gateway.request_timeout_seconds,
            reconnect_initial_delay=settings.gateway.reconnect_initial_delay,
            reconnect_max_delay=settings.gateway.reconnect_max_delay,
        )
        coordinator = ExecApprovalCoordinator(
            config=settings.exec_approvals,
            channel=TelegramNotifier(bot),
            renderer=TelegramApprovalRenderer(),
            event_bus=event_bus,
            gateway=gateway,
        )
        TelegramApprovalInterface(coordinator).register(application)

        self.context = RuntimeContext(
            settings=settings,
            application=application,
            event_bus=event_bus,
            gateway=gateway,
            coordinator=coordinator,
        )
        # Coordinator first: its timers must be cancelled before anything else goes away
        self.register_shutdown_callback(coordinator.stop, ShutdownPriority.CRITICAL, "coordinator")
        self.register_shutdown_callback(self._stop_telegram, ShutdownPriority.HIGH, "telegram")

        self._setup_signal_handlers()
        self._initialized = True
        logger.info(
            "Runtime bootstrap completed",
            approvals_enabled=settings.exec_approvals.enabled,
            approvers=len(settings.exec_approvals.approvers),
            gateway_url=settings.gateway.url,
        )
        return self.context

    async def start(self) -> None:
        """Start forwarding approvals and polling Telegram for button presses."""
        if not self._initialized:
            raise RuntimeError("Runtime.start() called before bootstrap()")
        if self._started:
            return

        coordinator = self.context.coordinator
        if not coordinator.is_active:
            logger.warning("Exec approvals disabled or no approvers configured; nothing will be forwarded")
        await coordinator.start()

        application = self.context.application
        await application.initialize()
        await application.start()
        await application.updater.start_polling(allowed_updates=[Update.CALLBACK_QUERY])
        self._started = True
        logger.info("Telegram polling started")

    async def run(self) -> None:
        """Bootstrap, start, and block until a shutdown signal arrives."""
        await self.bootstrap()
        try:
            await self.start()
            await self.wait_for_shutdown()
        finally:
            await self.shutdown()

    def _setup_signal_handlers(self):
        """Setup OS signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum, _frame):
            signal_name = signal.Signals(signum).name
            logger.info("Received %s, initiating graceful shutdown", signal_name)
            loop.call_soon_threadsafe(self._shutdown_event.set)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)
        logger.debug("Signal handlers registered")

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    async def wait_for_shutdown(self):
        """Wait for shutdown signal."""
        await self._shutdown_event.wait()

    async def shutdown(self):
        """Graceful shutdown: run callbacks in priority order."""
        if not self._initialized:
            logger.warning("Runtime not initialized, nothing to shutdown")
            return
        if self._shutdown_in_progress:
            logger.warning("Shutdown already in progress")
            return

        self._shutdown_in_progress = True
        shutdown_start = asyncio.get_running_loop().time()
        logger.info("Starting graceful shutdown", timeout_seconds=self.shutdown_timeout)
        try:
            await self._run_shutdown_callbacks()
            self._initialized = False
            logger.info(
                "Shutdown completed",
                duration_seconds=round(asyncio.get_running_loop().time() - shutdown_start, 3),
            )
        finally:
            self._shutdown_in_progress = False

    async def _stop_telegram(self) -> None:
        if not self._started:
            return
        application = self.context.application
        if application.updater and application.updater.running:
            await application.updater.stop()
        await application.stop()
        await application.shutdown()
        self._started = False

    async def _run_shutdown_callbacks(self):
        """Run registered shutdown callbacks in priority order."""
        sorted_callbacks = sorted(
            self.context.shutdown_callbacks, key=lambda cb: cb.priority.value, reverse=True
        )
        for cb in sorted_callbacks:
            cb_timeout = cb.timeout or 10.0
            try:
                await asyncio.wait_for(cb.callback(), timeout=cb_timeout)
            except TimeoutError:
                logger.error("Shutdown callback timed out: %s", cb.name)
            except Exception as e:
                logger.error("Error in shutdown callback %s: %s", cb.name, e)

    def register_shutdown_callback(
        self,
        callback: Callable,
        priority: ShutdownPriority = ShutdownPriority.NORMAL,
        name: str | None = None,
        timeout: float | None = None,
    ):
        """Register an async callback to be executed during shutdown."""
        if not self.context:
            logger.warning("Cannot register shutdown callback: Runtime not initialized")
            return

        callback_name = name or getattr(callback, "__name__", "unknown")
        self.context.shutdown_callbacks.append(
            ShutdownCallback(callback=callback, priority=priority, name=callback_name, timeout=timeout)
        )
        logger.debug("Registered shutdown callback: %s", callback_name, priority=priority.value)


async def run(config_path: str | None = None) -> None:
    await Runtime(config_path=config_path).run()

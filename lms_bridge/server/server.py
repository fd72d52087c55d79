"""Main LMS Bridge class."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from contextlib import suppress
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from aiohttp import ClientSession, TCPConnector

from lms_bridge.common.models.enums import EventType
from lms_bridge.common.models.event import BridgeEvent
from lms_bridge.constants import ROOT_LOGGER_NAME, VERBOSE_LOG_LEVEL
from lms_bridge.server.controllers.config import ConfigController
from lms_bridge.server.controllers.directory import PlayerDirectory
from lms_bridge.server.controllers.registry import IdentityRegistry
from lms_bridge.server.controllers.rpc import LmsRpcClient
from lms_bridge.server.helpers.util import get_package_version

if TYPE_CHECKING:
    from lms_bridge.common.models.config import BridgeConfig
    from lms_bridge.server.models.host import HostAdapter

EventCallBackType = Callable[[BridgeEvent], None]
LOGGER = logging.getLogger(ROOT_LOGGER_NAME)


@dataclass(frozen=True, eq=False)
class EventSubscription:
    """A listener with its (optional) event type and object id filters."""

    callback: EventCallBackType
    events: frozenset[EventType] | None = None
    object_ids: frozenset[str] | None = None

    def matches(self, event: BridgeEvent) -> bool:
        """Return True if the listener wants to receive the event."""
        if self.events is not None and event.event not in self.events:
            return False
        return self.object_ids is None or event.object_id in self.object_ids


class LmsBridge:
    """Main LMS Bridge object."""

    loop: asyncio.AbstractEventLoop
    http_session: ClientSession
    config: ConfigController
    settings: BridgeConfig
    rpc: LmsRpcClient
    registry: IdentityRegistry
    directory: PlayerDirectory

    def __init__(
        self,
        storage_path: str,
        host: HostAdapter | None = None,
        log_level: int | None = None,
    ) -> None:
        """Initialize the LMS Bridge.

        Without a host, the built-in LoggingHost is used. Without a log_level
        the level of the bridge logger is only changed by the debug setting.
        """
        self.storage_path = storage_path
        self.host = host
        self.log_level = log_level
        self.logger = LOGGER
        self._subscribers: list[EventSubscription] = []
        self._tracked_tasks: dict[str, asyncio.Task] = {}
        self.closing = False
        self.version: str = "0.0.0"

    async def start(self) -> None:
        """Start running the bridge."""
        self.loop = asyncio.get_running_loop()
        self.version = await get_package_version("lms_bridge") or self.version
        # create shared aiohttp ClientSession
        self.http_session = ClientSession(
            connector=TCPConnector(enable_cleanup_closed=True, limit_per_host=100),
        )
        # setup config controller first and fetch important config values
        self.config = ConfigController(self)
        await self.config.setup()
        self.settings = self.config.get_bridge_config()
        self._apply_log_level()
        if self.host is None:
            # pylint: disable=import-outside-toplevel
            from lms_bridge.server.hosts.logging_host import LoggingHost

            self.host = LoggingHost(self)
        LOGGER.info(
            "Starting LMS Bridge version %s for server %s",
            self.version,
            self.settings.base_url,
        )
        self.rpc = LmsRpcClient(
            self.http_session,
            self.settings.base_url,
            timeout=self.settings.timeout,
            username=self.settings.username,
            password=self.settings.password,
        )
        self.registry = IdentityRegistry(self, self.settings.status_interval)
        self.directory = PlayerDirectory(self, self.registry, self.settings.discovery_interval)
        # restore cached devices before the first discovery cycle
        if restored := self.registry.restore():
            LOGGER.info("Restored %s cached device(s)", restored)
        self.directory.start()

    async def stop(self) -> None:
        """Stop running the bridge."""
        LOGGER.info("Stop called, cleaning up...")
        self.signal_event(EventType.SHUTDOWN)
        self.closing = True
        self.directory.stop()
        self.registry.close()
        # cancel all running tasks and wait for them to finish
        tasks = [x for x in self._tracked_tasks.values() if x is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.config.close()
        # close/cleanup shared http session
        if self.http_session:
            await self.http_session.close()

    def signal_event(
        self,
        event: EventType,
        object_id: str | None = None,
        data: Any = None,
    ) -> None:
        """Notify the matching subscribers of an event (ignored once the bridge is closing)."""
        if self.closing:
            return
        LOGGER.getChild("event").log(VERBOSE_LOG_LEVEL, "%s %s", event.value, object_id or "")
        event_obj = BridgeEvent(event=event, object_id=object_id, data=data)
        for subscription in list(self._subscribers):
            if not subscription.matches(event_obj):
                continue
            if asyncio.iscoroutinefunction(subscription.callback):
                self.create_task(subscription.callback(event_obj))
            else:
                self.loop.call_soon(subscription.callback, event_obj)

    def subscribe(
        self,
        cb_func: EventCallBackType,
        event_filter: EventType | tuple[EventType, ...] | None = None,
        id_filter: str | tuple[str, ...] | None = None,
    ) -> Callable[[], None]:
        """Listen for bridge events and return the function that stops listening.

            :param cb_func: callback function or coroutine function
            :param event_filter: only these event types (all when omitted)
            :param id_filter: only events about these (normalized) player ids
        """
        if isinstance(event_filter, EventType):
            event_filter = (event_filter,)
        if isinstance(id_filter, str):
            id_filter = (id_filter,)
        subscription = EventSubscription(
            callback=cb_func,
            events=None if event_filter is None else frozenset(event_filter),
            object_ids=None if id_filter is None else frozenset(id_filter),
        )
        self._subscribers.append(subscription)

        def unsubscribe() -> None:
            with suppress(ValueError):
                self._subscribers.remove(subscription)

        return unsubscribe

    def create_task(
        self,
        target: Coroutine | Callable[..., Coroutine],
        *args: Any,
        task_id: str | None = None,
        **kwargs: Any,
    ) -> asyncio.Task:
        """Run a coroutine (function) as task which is cancelled when the bridge stops.

        While a task with the given task_id is running, that task is returned
        and the new target is discarded.
        """
        if task_id and (running := self._tracked_tasks.get(task_id)) and not running.done():
            if asyncio.iscoroutine(target):
                target.close()
            return running
        coro = target if asyncio.iscoroutine(target) else target(*args, **kwargs)
        task = self.loop.create_task(coro)
        key = task_id or f"task_{id(task)}"
        self._tracked_tasks[key] = task
        task.add_done_callback(partial(self._on_task_done, key))
        return task

    def _on_task_done(self, key: str, task: asyncio.Task) -> None:
        """Forget a finished task and log its error, if any."""
        if self._tracked_tasks.get(key) is task:
            del self._tracked_tasks[key]
        if task.cancelled() or (err := task.exception()) is None:
            return
        LOGGER.warning(
            "Task %s failed: %s",
            key,
            str(err),
            exc_info=err if LOGGER.isEnabledFor(logging.DEBUG) else None,
        )

    def _apply_log_level(self) -> None:
        """Set the level of the bridge logger.

        The debug setting raises the requested level to at least DEBUG.
        """
        level = self.log_level
        if self.settings.debug and (level is None or level > logging.DEBUG):
            level = logging.DEBUG
        if level is not None:
            LOGGER.setLevel(level)

"""
Refresh Coordinator - decides when collections are re-pulled from the gateway

- guarded_fetch bounds how long a slow gateway can hold a refresh
- silent refreshes (push-triggered) never flash a spinner or an error
- bursts of change events collapse into one in-flight + one pending refresh
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from vitrina.core.config import settings
from vitrina.core.exceptions import GatewayError
from vitrina.core.state import ENTITIES, AppState
from vitrina.integrations.base import PersistenceGateway
from vitrina.integrations.notifier import ChangeNotifier
from .notifications import NotificationChannel

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _drain(task: asyncio.Task):
    """Consume the outcome of a fetch that lost the race against the timer"""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Late fetch failed after timeout: {exc}")
    else:
        logger.info("Late fetch completed after timeout; result discarded")


async def guarded_fetch(
    operation: Callable[[], Awaitable[T]],
    timeout_ms: int,
    fallback: T,
    on_timeout: Optional[Callable[[], None]] = None,
) -> T:
    """
    Race the fetch against a timer. When the timer wins, return fallback and
    let the fetch run to completion in the background without applying it.
    Errors raised by the fetch itself before the deadline propagate.
    """
    task = asyncio.ensure_future(operation())
    done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    if task in done:
        return task.result()

    task.add_done_callback(_drain)
    logger.warning(f"Fetch exceeded {timeout_ms}ms, using fallback")
    if on_timeout:
        on_timeout()
    return fallback


# entity -> (gateway method, state attribute, fallback builder)
FETCHERS: Dict[str, tuple] = {
    "product": ("list_products", "products", lambda state: []),
    "asset": ("list_assets", "assets", lambda state: []),
    # settings are not a collection: a failed read keeps what we had
    "settings": ("get_settings", "settings", lambda state: state.settings),
}

ERROR_MESSAGES = {
    "product": "Error al cargar los productos",
    "asset": "Error al cargar datos de inventario",
    "settings": "Error al cargar la configuración",
}


class RefreshCoordinator:

    def __init__(
        self,
        state: AppState,
        gateway: PersistenceGateway,
        notifications: NotificationChannel,
        timeout_ms: int = settings.FETCH_TIMEOUT_MS,
    ):
        self.state = state
        self.gateway = gateway
        self.notifications = notifications
        self.timeout_ms = timeout_ms
        self.fetch_count: Dict[str, int] = {e: 0 for e in ENTITIES}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._rerun: Dict[str, bool] = {}
        self._rerun_loud: Dict[str, bool] = {}
        self._error_reported: Dict[str, bool] = {e: False for e in ENTITIES}

    # ========== Scheduling ==========

    def request(self, entity: str, silent: bool = True) -> asyncio.Task:
        """
        Start a refresh, or fold this request into the one already running.
        A folded request re-runs once after the current fetch; it is loud if
        any folded request was loud.
        """
        if entity not in FETCHERS:
            raise ValueError(f"Unknown entity '{entity}'")

        running = self._tasks.get(entity)
        if running is not None and not running.done():
            self._rerun[entity] = True
            if not silent:
                self._rerun_loud[entity] = True
            return running

        task = asyncio.ensure_future(self._run(entity, silent))
        task.add_done_callback(self._log_failure)
        self._tasks[entity] = task
        return task

    async def refresh(self, entity: str, silent: bool = False) -> bool:
        """User-initiated refreshes are loud by default; True when fresh data was applied"""
        return await self.request(entity, silent=silent)

    async def refresh_all(self, silent: bool = False) -> Dict[str, bool]:
        tasks = {entity: self.request(entity, silent=silent) for entity in ENTITIES}
        results = await asyncio.gather(*tasks.values())
        return dict(zip(tasks.keys(), results))

    def is_refreshing(self, entity: str) -> bool:
        task = self._tasks.get(entity)
        return task is not None and not task.done()

    # ========== Push notifications ==========

    def on_change(self, entity: str) -> Optional[asyncio.Task]:
        """Push callback: the only valid reaction is a silent re-pull"""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"Change event for {entity} outside an event loop, ignored")
            return None
        logger.info(f"Change event received: {entity}")
        return self.request(entity, silent=True)

    def attach(self, notifier: ChangeNotifier) -> Callable[[], None]:
        unsubscribers = [notifier.subscribe(entity, self.on_change) for entity in ENTITIES]

        def detach():
            for unsubscribe in unsubscribers:
                unsubscribe()

        return detach

    async def close(self):
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        for task in self._tasks.values():
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()

    # ========== Execution ==========

    async def _run(self, entity: str, silent: bool) -> bool:
        ok = await self._refresh_once(entity, silent)
        while self._rerun.pop(entity, False):
            loud = self._rerun_loud.pop(entity, False)
            ok = await self._refresh_once(entity, silent=not loud)
        return ok

    async def _refresh_once(self, entity: str, silent: bool) -> bool:
        method, attr, fallback_for = FETCHERS[entity]
        fallback: Any = fallback_for(self.state)
        timed_out = False

        def mark_timeout():
            nonlocal timed_out
            timed_out = True

        if not silent:
            self.state.loading[entity] = True
        self.fetch_count[entity] += 1
        failed = False
        try:
            data = await guarded_fetch(
                getattr(self.gateway, method), self.timeout_ms, fallback, on_timeout=mark_timeout
            )
        except GatewayError as e:
            logger.error(f"Refresh of {entity} failed: {e}")
            data = fallback
            failed = True
        finally:
            if not silent:
                self.state.loading[entity] = False

        setattr(self.state, attr, data)

        if failed or timed_out:
            if not silent and not self._error_reported[entity]:
                self.notifications.error(ERROR_MESSAGES[entity])
                self._error_reported[entity] = True
            return False

        self._error_reported[entity] = False
        return True

    @staticmethod
    def _log_failure(task: asyncio.Task):
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Refresh task crashed: {exc}")

"""
Application Context - wires state, gateway and services for one running app
"""
from dataclasses import dataclass
from typing import Callable, Optional
import logging

from vitrina.core.config import settings
from vitrina.core.state import AppState
from vitrina.integrations import ChangeNotifier, InMemoryGateway, PersistenceGateway, SupabaseGateway
from vitrina.services import NotificationChannel, ProductService, RefreshCoordinator

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    state: AppState
    gateway: PersistenceGateway
    notifications: NotificationChannel
    notifier: ChangeNotifier
    coordinator: RefreshCoordinator
    products: ProductService
    detach: Optional[Callable[[], None]] = None

    async def close(self):
        if self.detach:
            self.detach()
            self.detach = None
        await self.coordinator.close()


def default_gateway() -> PersistenceGateway:
    if settings.REST_URL:
        logger.info(f"Using Supabase gateway at {settings.SUPABASE_URL}")
        return SupabaseGateway(settings.REST_URL, settings.SUPABASE_KEY)
    logger.warning("SUPABASE_URL not configured, using in-memory gateway")
    return InMemoryGateway()


def build_context(
    gateway: Optional[PersistenceGateway] = None,
    timeout_ms: int = settings.FETCH_TIMEOUT_MS,
) -> AppContext:
    state = AppState()
    gateway = gateway or default_gateway()
    notifications = NotificationChannel()
    notifier = ChangeNotifier()
    coordinator = RefreshCoordinator(state, gateway, notifications, timeout_ms=timeout_ms)
    context = AppContext(
        state=state,
        gateway=gateway,
        notifications=notifications,
        notifier=notifier,
        coordinator=coordinator,
        products=ProductService(state, gateway, notifications),
    )
    context.detach = coordinator.attach(notifier)
    return context

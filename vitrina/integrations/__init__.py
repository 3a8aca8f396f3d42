# Persistence & Change Notification Integrations
from .base import PersistenceGateway
from .memory import InMemoryGateway
from .supabase import SupabaseGateway
from .notifier import ChangeNotifier

__all__ = [
    "PersistenceGateway",
    "InMemoryGateway",
    "SupabaseGateway",
    "ChangeNotifier",
]

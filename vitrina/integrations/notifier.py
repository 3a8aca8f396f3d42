"""
Push Notifier - change events from the hosted data service

Events carry no payload beyond the entity name; subscribers must re-pull.
"""
from typing import Callable, Dict, List
import logging

from vitrina.core.state import ENTITIES

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]


class ChangeNotifier:

    def __init__(self):
        self._subscribers: Dict[str, List[ChangeCallback]] = {e: [] for e in ENTITIES}

    def subscribe(self, entity: str, callback: ChangeCallback) -> Callable[[], None]:
        if entity not in self._subscribers:
            raise ValueError(f"Unknown entity '{entity}'")
        self._subscribers[entity].append(callback)

        def unsubscribe():
            callbacks = self._subscribers[entity]
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def publish(self, entity: str) -> int:
        """Fan out one change event; returns how many subscribers were called"""
        if entity not in self._subscribers:
            raise ValueError(f"Unknown entity '{entity}'")
        callbacks = list(self._subscribers[entity])
        for callback in callbacks:
            try:
                callback(entity)
            except Exception as e:
                logger.error(f"Change subscriber for {entity} failed: {e}")
        return len(callbacks)

    def subscriber_count(self, entity: str) -> int:
        return len(self._subscribers.get(entity, []))

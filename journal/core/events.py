"""In-process change notifications emitted after successful storage writes."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageChange:
    collection: str
    size: int


Listener = Callable[[StorageChange], None]


class ChangeNotifier:
    """Synchronous observer list. A failing listener never fails the write."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, change: StorageChange) -> int:
        delivered = 0
        for listener in list(self._listeners):
            try:
                listener(change)
                delivered += 1
            except Exception:
                logger.exception("Change listener failed for collection %s", change.collection)
        return delivered

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

"""Minimal subscribe/notify state container."""
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class Observable:
    """Holds subscribers and calls each of them after a state change."""

    def __init__(self):
        self._subscribers: list[Callable] = []

    def subscribe(self, callback: Callable) -> Callable[[], None]:
        """Register ``callback(self)``. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        """Call every subscriber; one that raises is logged and the rest still run."""
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                logger.exception("Subscriber %r failed", callback)

"""Event primitives for the attachment model.

Subscriptions are explicit: ``subscribe()`` returns an unsubscribe
callable, and owners keep those callables so they can detach
deterministically when they are disposed.

Example:
    changed = Emitter()
    unsubscribe = changed.subscribe(lambda: print("changed"))
    changed.fire()      # prints "changed"
    unsubscribe()
    changed.fire()      # nothing
"""

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

# Unsubscribe handle returned by subscribe()
Unsubscribe = Callable[[], None]


class Emitter:
    """Single-threaded event emitter.

    Listeners are called synchronously, in subscription order. A listener
    that raises is logged and does not prevent delivery to the others.
    After dispose() the emitter drops all listeners and ignores fire().
    """

    def __init__(self, name: str = "event"):
        self._name = name
        self._listeners: List[Callable[..., Any]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, callback: Callable[..., Any]) -> Unsubscribe:
        """Register a listener.

        Args:
            callback: Function invoked with the arguments passed to fire().

        Returns:
            Callable that removes this listener. Calling it more than once
            has no effect.
        """
        if self._disposed:
            return _noop

        # Wrap so the same callback can be subscribed twice and each
        # handle removes exactly its own registration.
        def listener(*args: Any) -> Any:
            return callback(*args)

        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass  # Already removed

        return unsubscribe

    def fire(self, *args: Any) -> None:
        """Deliver an event to all current listeners."""
        if self._disposed:
            return

        # Snapshot: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener for '%s' raised", self._name)

    def dispose(self) -> None:
        self._disposed = True
        self._listeners.clear()


def _noop() -> None:
    pass

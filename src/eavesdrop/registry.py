import logging
import threading

from .types import Entry, Listener

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by subscribe; calling it (or close) unregisters the listener."""

    __slots__ = ("listener", "_registry")

    def __init__(self, registry: "ListenerRegistry", listener: Listener):
        self.listener = listener
        self._registry: ListenerRegistry | None = registry

    @property
    def active(self) -> bool:
        return self._registry is not None

    def close(self) -> None:
        registry, self._registry = self._registry, None
        if registry is not None:
            registry.discard(self)

    def __call__(self) -> None:
        self.close()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ListenerRegistry:
    """
    Set of subscriptions with failure isolated fan-out.

    Delivery walks a snapshot of the members taken when emission starts, so a
    listener may unsubscribe itself (or anyone else) from inside its callback.
    """

    __slots__ = ("_members", "_lock")

    def __init__(self) -> None:
        # dict keeps insertion order and gives O(1) removal
        self._members: dict[Subscription, None] = {}
        self._lock = threading.Lock()

    def add(self, listener: Listener) -> Subscription:
        subscription = Subscription(self, listener)
        with self._lock:
            self._members[subscription] = None
        return subscription

    def discard(self, subscription: Subscription) -> None:
        with self._lock:
            self._members.pop(subscription, None)

    def emit(self, entry: Entry) -> None:
        with self._lock:
            members = tuple(self._members)

        for subscription in members:
            if not subscription.active:
                continue
            try:
                subscription.listener(entry)
            except Exception:
                logger.debug("Listener %r failed on entry %s", subscription.listener, entry.id, exc_info=True)

    def clear(self) -> None:
        with self._lock:
            members = tuple(self._members)
            self._members.clear()
        for subscription in members:
            subscription._registry = None

    def __len__(self) -> int:
        return len(self._members)

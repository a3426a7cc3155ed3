import itertools
import logging
import threading
from typing import Callable, Dict

Subscriber = Callable[[object], None]


class BroadcastHub:
    """Registry of state observers keyed by subscription id.

    ``publish`` calls every observer once, in subscription order, and logs
    (rather than propagates) an observer's failure so the rest still get
    the event.
    """

    def __init__(self, logger: logging.Logger = None) -> None:
        self._subscribers: Dict[int, Subscriber] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self.logger = logger or logging.getLogger(__name__)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            sub_id = next(self._ids)
            self._subscribers[sub_id] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(sub_id, None)

        return unsubscribe

    def publish(self, state) -> int:
        with self._lock:
            targets = list(self._subscribers.items())
        delivered = 0
        for sub_id, callback in targets:
            try:
                callback(state)
                delivered += 1
            except Exception:
                self.logger.exception(f"[hub] subscriber={sub_id} failed on status={getattr(state, 'status', '?')}")
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

import logging
import threading
from collections import deque
from contextlib import nullcontext

from flask import current_app, has_app_context

from .hub import BroadcastHub
from .scheduler import TransitionScheduler
from .state import Active, Closed, Finished, Result, RoundState, Standby

_STATE_TYPES = (Standby, Active, Closed, Result, Finished)


class QuizOrchestrator:
    """Process-wide owner of the current round.

    Bound to a Flask app with ``init_app`` like the other extensions. All
    reads and writes of the round go through ``get_state``/``set_state``;
    observers attach with ``subscribe``.
    """

    def __init__(self, app=None, timer_factory=None):
        self.app = None
        # Re-entrant: timer callbacks and subscribers may call set_state
        self._lock = threading.RLock()
        self._state: RoundState = Standby()
        self._generation = 0
        # States installed while a publish is in flight, delivered in order
        self._pending = deque()
        self._publishing = False
        self.hub = BroadcastHub()
        self.scheduler = TransitionScheduler(self, timer_factory)
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        app.extensions['quiz'] = self
        self.hub.logger = app.logger
        self.scheduler.configure(app.config)
        self.reset()

    @property
    def logger(self):
        if self.app is not None:
            return self.app.logger
        return logging.getLogger(__name__)

    def app_context(self):
        if has_app_context() and current_app._get_current_object() is self.app:
            return nullcontext()
        return self.app.app_context()

    def reset(self) -> None:
        """Drop every observer and pending timer and go back to standby."""
        with self._lock:
            self.scheduler.cancel()
            self.hub.clear()
            self._pending.clear()
            self._generation += 1
            self._state = Standby()

    # ---- store ----

    def get_state(self) -> RoundState:
        return self._state

    def is_current(self, generation: int) -> bool:
        return self._generation == generation

    def set_state(self, next_state: RoundState) -> int:
        """Install ``next_state``, notify observers and arm its transition."""
        if not isinstance(next_state, _STATE_TYPES):
            raise TypeError(f"not a round state: {next_state!r}")
        with self._lock:
            previous = self._state
            self._generation += 1
            generation = self._generation
            self._state = next_state
            self.scheduler.cancel()
            self.logger.info(f"[state] {previous.status} -> {next_state.status} generation={generation}")
            self._pending.append((next_state, generation))
            if not self._publishing:
                self._drain()
            return generation

    def _drain(self) -> None:
        # Nested set_state calls from subscribers only enqueue, so every
        # observer sees transitions in the order they were installed.
        self._publishing = True
        try:
            while self._pending:
                state, generation = self._pending.popleft()
                self.hub.publish(state)
                # A subscriber may already have moved the round on
                if self._generation == generation:
                    self.scheduler.arm(state, generation)
        finally:
            self._publishing = False

    def set_state_if_current(self, generation: int, next_state: RoundState) -> bool:
        with self._lock:
            if self._generation != generation:
                return False
            self.set_state(next_state)
            return True

    # ---- observers ----

    def subscribe(self, callback):
        return self.hub.subscribe(callback)

    def snapshot_and_subscribe(self, callback):
        """Current state plus a subscription that sees every later transition."""
        with self._lock:
            return self._state, self.hub.subscribe(callback)

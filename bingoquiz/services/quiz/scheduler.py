import threading
from typing import Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from bingoquiz import db, persistence, socketio
from bingoquiz.exceptions import PersistenceNotConfigured
from .scoring import score_round
from .state import Active, Closed, Finished, Question, Result, RoundState


class BackgroundTimer:
    """One-shot timer running as a Socket.IO background task.

    ``cancel()`` wakes the task early and the callback is skipped.
    """

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self._cancelled = threading.Event()
        socketio.start_background_task(self._run, delay, callback)

    def _run(self, delay: float, callback: Callable[[], None]) -> None:
        if self._cancelled.wait(delay):
            return
        callback()

    def cancel(self) -> None:
        self._cancelled.set()


class TransitionScheduler:
    """Dwell/successor table for the round lifecycle.

    active -> closed -> result -> active(next question) | finished

    At most one transition is armed at a time. Each carries the store
    generation it was armed for and does nothing once that generation is
    no longer current.
    """

    CONFIG_KEYS = {
        'active': 'ACTIVE_DURATION_SEC',
        'closed': 'CLOSED_DURATION_SEC',
        'result': 'RESULT_DURATION_SEC',
    }

    def __init__(self, orchestrator, timer_factory=None) -> None:
        self.orchestrator = orchestrator
        self.timer_factory = timer_factory or BackgroundTimer
        self.durations: Dict[str, float] = {'active': 15, 'closed': 5, 'result': 5}
        self._successors = {
            'active': self._close,
            'closed': self._score,
            'result': self._advance,
        }
        self._armed = None

    def configure(self, config) -> None:
        for status, key in self.CONFIG_KEYS.items():
            if key in config:
                self.durations[status] = int(config[key])

    @property
    def logger(self):
        return self.orchestrator.logger

    @property
    def time_limit_sec(self) -> int:
        return int(self.durations['active'])

    def dwell_for(self, state: RoundState) -> Optional[float]:
        if state.status not in self._successors:
            return None
        return self.durations[state.status]

    def successor(self, state: RoundState) -> RoundState:
        return self._successors[state.status](state)

    def fallback(self, state: RoundState) -> RoundState:
        """Safest forward state when computing the successor blew up."""
        if isinstance(state, Active):
            return Closed(question=state.question, round=state.round)
        if isinstance(state, Closed):
            return Result(question=state.question, round=state.round, correct_choices=())
        return Finished()

    # ---- arming ----

    def arm(self, state: RoundState, generation: int) -> bool:
        self.cancel()
        delay = self.dwell_for(state)
        if delay is None:
            return False
        handle = self.timer_factory(delay, lambda: self.fire(state, generation))
        self._armed = handle
        self.logger.info(f"[timer-set] status={state.status} generation={generation} duration={delay}s")
        return True

    def cancel(self) -> None:
        handle, self._armed = self._armed, None
        if handle is not None:
            handle.cancel()

    @property
    def armed(self) -> bool:
        return self._armed is not None

    # ---- firing ----

    def fire(self, state: RoundState, generation: int) -> None:
        with self.orchestrator.app_context():
            if not self.orchestrator.is_current(generation):
                self.logger.info(f"[timer-abort] status={state.status} generation={generation} stale")
                return
            self.logger.info(f"[timer-fire] status={state.status} generation={generation}")
            try:
                next_state = self.successor(state)
            except Exception:
                self.logger.exception(f"[timer-fire] status={state.status} successor failed, falling back")
                db.session.rollback()
                next_state = self.fallback(state)
            if not self.orchestrator.set_state_if_current(generation, next_state):
                self.logger.info(
                    f"[timer-abort] status={state.status} generation={generation} superseded, dropped {next_state.status}"
                )

    def _close(self, state: Active) -> Closed:
        return Closed(question=state.question, round=state.round)

    def _score(self, state: Closed) -> Result:
        return score_round(state)

    def _advance(self, state: Result) -> RoundState:
        next_id = state.question.id + 1
        try:
            row = persistence.get_question(next_id)
        except (SQLAlchemyError, PersistenceNotConfigured) as exc:
            db.session.rollback()
            self.logger.error(f"[advance] lookup of question={next_id} failed, finishing: {exc}")
            return Finished()
        if row is None:
            self.logger.info(f"[advance] no question={next_id}, finishing at round={state.round}")
            return Finished()
        self.logger.info(f"[advance] round {state.round} -> {state.round + 1} question={next_id}")
        return Active.open(Question.from_model(row), state.round + 1, self.time_limit_sec)

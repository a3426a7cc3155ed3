import math

import pytest

from sqlalchemy.exc import OperationalError

from bingoquiz import quiz
from bingoquiz.services.quiz import Active, Choice, Closed, Finished, Question, Result, Standby
from bingoquiz.services.quiz.hub import BroadcastHub

Q3 = Question(id=3, text='Question 3')


def test_get_state_returns_last_value_set(flask_app):
    assert quiz.get_state() == Standby()
    states = [
        Active.open(Q3, 2, 15, now=1000.0),
        Closed(question=Q3, round=2),
        Finished(),
        Standby(),
        Result(question=Q3, round=2, correct_choices=(Choice(7, 'Choice 7'),)),
    ]
    for state in states:
        quiz.set_state(state)
        assert quiz.get_state() is state


def test_set_state_rejects_non_state(flask_app):
    with pytest.raises(TypeError):
        quiz.set_state({'status': 'standby'})
    assert quiz.get_state() == Standby()


def test_active_closes_after_dwell(flask_app, timers):
    quiz.set_state(Active.open(Q3, 2, 15))
    timer = timers.only_pending()
    assert timer.delay == 15
    timer.fire()
    assert quiz.get_state() == Closed(question=Q3, round=2)
    # closed arms its own, shorter transition
    assert timers.only_pending().delay == 5


def test_override_cancels_pending_transition(flask_app, timers):
    quiz.set_state(Active.open(Q3, 1, 15))
    first = timers.only_pending()
    quiz.set_state(Standby())
    assert first.cancelled
    assert timers.pending == []
    # even a callback that slipped past cancellation does nothing
    first.callback()
    assert quiz.get_state() == Standby()


def test_only_one_transition_armed(flask_app, timers):
    quiz.set_state(Active.open(Q3, 1, 15))
    quiz.set_state(Active.open(Question(4, 'Question 4'), 2, 15))
    quiz.set_state(Closed(question=Q3, round=1))
    assert len(timers.pending) == 1
    assert timers.pending[0].delay == 5


def test_standby_and_finished_arm_nothing(flask_app, timers):
    quiz.set_state(Standby())
    quiz.set_state(Finished())
    assert timers.pending == []
    assert not quiz.scheduler.armed


def test_result_without_next_question_finishes(flask_app, quiz_data, timers):
    quiz.set_state(Result(question=Question(5, 'Question 5'), round=4))
    timers.fire_next()
    assert quiz.get_state() == Finished()
    assert timers.pending == []


def test_result_advances_to_next_question(flask_app, quiz_data, timers):
    quiz.set_state(Result(question=Question(1, 'Question 1'), round=1))
    timers.fire_next()
    state = quiz.get_state()
    assert isinstance(state, Active)
    assert state.question == Question(2, 'Question 2')
    assert state.round == 2
    assert state.time_limit_sec == 15
    assert timers.only_pending().delay == 15


def test_advance_lookup_failure_finishes(flask_app, quiz_data, timers, monkeypatch):
    from bingoquiz import persistence

    def broken(question_id):
        raise OperationalError('SELECT', {}, Exception('connection lost'))

    monkeypatch.setattr(persistence, 'get_question', broken)
    quiz.set_state(Result(question=Question(1, 'Question 1'), round=1))
    timers.fire_next()
    assert quiz.get_state() == Finished()


def test_advance_without_database_finishes(flask_app, quiz_data, timers):
    flask_app.config['QUIZ_DB_CONFIGURED'] = False
    quiz.set_state(Result(question=Question(1, 'Question 1'), round=1))
    timers.fire_next()
    assert quiz.get_state() == Finished()


def test_scoring_discarded_when_round_overridden(flask_app, quiz_data, timers, monkeypatch):
    from bingoquiz.services.quiz import scheduler

    def score_then_lose_race(closed):
        # an admin resets while scoring is still talking to the database
        quiz.set_state(Standby())
        return Result(question=closed.question, round=closed.round)

    monkeypatch.setattr(scheduler, 'score_round', score_then_lose_race)
    quiz.set_state(Closed(question=Q3, round=2))
    timers.fire_next()
    assert quiz.get_state() == Standby()
    assert timers.pending == []


def test_nested_transition_reaches_every_subscriber_in_order(flask_app, timers):
    def bounce(state):
        if isinstance(state, Active):
            quiz.set_state(Finished())

    seen = []
    quiz.subscribe(bounce)
    quiz.subscribe(lambda state: seen.append(state.status))
    quiz.set_state(Active.open(Q3, 1, 15))
    assert seen == ['active', 'finished']
    assert quiz.get_state() == Finished()
    assert timers.pending == []


def test_nested_transition_arms_only_the_newest_state(flask_app, timers):
    def close_early(state):
        if isinstance(state, Active):
            quiz.set_state(Closed(question=state.question, round=state.round))

    quiz.subscribe(close_early)
    quiz.set_state(Active.open(Q3, 1, 15))
    assert quiz.get_state() == Closed(question=Q3, round=1)
    assert timers.only_pending().delay == 5


def test_successor_crash_falls_back_to_empty_result(flask_app, timers, monkeypatch):
    from bingoquiz.services.quiz import scheduler

    def explode(closed):
        raise RuntimeError('boom')

    monkeypatch.setattr(scheduler, 'score_round', explode)
    quiz.set_state(Closed(question=Q3, round=2))
    timers.fire_next()
    assert quiz.get_state() == Result(question=Q3, round=2, correct_choices=())


def test_late_subscriber_gets_closed_once(flask_app, timers):
    quiz.set_state(Active.open(Q3, 2, 15))
    seen = []
    quiz.subscribe(seen.append)
    timers.fire_next()
    assert seen == [Closed(question=Q3, round=2)]
    assert seen[0].to_payload() == quiz.get_state().to_payload()


def test_subscriber_moving_round_on_suppresses_stale_timer(flask_app, timers):
    def bounce(state):
        if isinstance(state, Active):
            quiz.set_state(Standby())

    quiz.subscribe(bounce)
    quiz.set_state(Active.open(Q3, 1, 15))
    assert quiz.get_state() == Standby()
    assert timers.pending == []


def test_hub_isolates_failing_subscriber():
    hub = BroadcastHub()
    received = []

    def broken(state):
        raise ValueError('socket gone')

    hub.subscribe(broken)
    hub.subscribe(received.append)
    assert hub.publish(Finished()) == 1
    assert received == [Finished()]


def test_hub_unsubscribe_is_idempotent():
    hub = BroadcastHub()
    received = []
    unsubscribe = hub.subscribe(received.append)
    assert len(hub) == 1
    unsubscribe()
    unsubscribe()
    assert len(hub) == 0
    hub.publish(Standby())
    assert received == []


def test_payloads():
    active = Active.open(Q3, 2, 15, now=1000.75)
    assert active.to_payload() == {
        'status': 'active',
        'data': {
            'question': {'id': 3, 'context': 'Question 3'},
            'round': 2,
            'time_limit_sec': 15,
            'ended_at': math.floor(1015.75),
        },
    }
    assert Closed(question=Q3, round=2).to_payload() == {'status': 'closed'}
    result = Result(question=Q3, round=2, correct_choices=(Choice(7, 'Choice 7'),))
    assert result.to_payload()['data']['correct_choice'] == [{'id': 7, 'context': 'Choice 7'}]
    assert Standby().to_payload() == {'status': 'standby'}
    assert Finished().to_payload() == {'status': 'finished'}

from flask import current_app, request
from flask_socketio import emit
from typing import Callable, Dict

from bingoquiz import quiz, socketio

NAMESPACE = '/ws'

_subscriptions: Dict[str, Callable[[], None]] = {}
_heartbeat_started = False


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _push_to(sid: str):
    def push(state):
        socketio.emit('quiz_state', state.to_payload(), to=sid, namespace=NAMESPACE)
    return push


def handle_connect(*args):
    if not current_app.config.get('TESTING'):
        start_heartbeat(float(current_app.config.get('STREAM_HEARTBEAT_SEC', 30)))
    sid = _get_sid()
    snapshot, unsubscribe = quiz.snapshot_and_subscribe(_push_to(sid))
    previous = _subscriptions.pop(sid, None)
    if previous:
        previous()
    _subscriptions[sid] = unsubscribe
    emit('quiz_state', snapshot.to_payload())


def handle_disconnect(*args):
    unsubscribe = _subscriptions.pop(_get_sid(), None)
    if unsubscribe:
        unsubscribe()


def handle_ping(data=None):
    emit('pong', data or {})


def subscriber_count() -> int:
    return len(_subscriptions)


def _heartbeat_loop(interval: float) -> None:
    while True:
        socketio.sleep(interval)
        socketio.emit('heartbeat', {}, namespace=NAMESPACE)


def start_heartbeat(interval: float) -> None:
    global _heartbeat_started
    if _heartbeat_started or interval <= 0:
        return
    _heartbeat_started = True
    socketio.start_background_task(_heartbeat_loop, interval)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'.

    The keep-alive task starts with the first connection, never under test.
    """
    _subscriptions.clear()
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)

import json
import queue

from flask import Blueprint, Response, current_app, jsonify

from bingoquiz import quiz

quiz_api = Blueprint('quiz', __name__)


def _sse_event(state) -> str:
    return f"data: {json.dumps(state.to_payload())}\n\n"


@quiz_api.route('/polling', methods=['GET'])
def polling():
    return jsonify(quiz.get_state().to_payload())


@quiz_api.route('/stream', methods=['GET'])
def stream():
    heartbeat = float(current_app.config.get('STREAM_HEARTBEAT_SEC', 30))
    logger = current_app.logger

    def generate():
        events = queue.Queue()
        snapshot, unsubscribe = quiz.snapshot_and_subscribe(events.put)
        logger.info(f"[sse] subscribed, observers={len(quiz.hub)}")
        try:
            yield _sse_event(snapshot)
            while True:
                try:
                    state = events.get(timeout=heartbeat)
                except queue.Empty:
                    yield ': heartbeat\n\n'
                    continue
                yield _sse_event(state)
        finally:
            unsubscribe()
            logger.info(f"[sse] unsubscribed, observers={len(quiz.hub)}")

    return Response(
        generate(),
        mimetype='text/event-stream',
        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
    )

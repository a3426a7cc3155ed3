import json

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from bingoquiz import db, persistence, quiz
from bingoquiz.exceptions import InvalidRequest, QuestionNotFound
from bingoquiz.models import Card, UserAnswer, generate_seed
from bingoquiz.services.quiz import Active, Choice, Closed, Finished, Question, Result, Standby
from bingoquiz.services.quiz.state import STATUSES, current_question

admin = Blueprint('admin', __name__)


def _json_body(allow_empty=False):
    if allow_empty and not request.get_data(cache=True).strip():
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        if allow_empty and not request.is_json:
            return {}
        raise InvalidRequest('Invalid JSON body')
    return data


def _requested_question_id(data):
    question = data.get('question')
    if isinstance(question, dict) and question.get('id') is not None:
        return question['id']
    return data.get('question_id')


def _positive_int(value, message):
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(message)
    if number <= 0:
        raise InvalidRequest(message)
    return number


def _resolve_question(question_id) -> Question:
    row = persistence.get_question(question_id)
    if row is None:
        raise QuestionNotFound(question_id)
    return Question.from_model(row)


def _state_response():
    return jsonify({'ok': True, 'state': quiz.get_state().to_payload()})


@admin.route('/state', methods=['GET'])
@login_required
def get_round_state():
    return jsonify({'state': quiz.get_state().to_payload()})


@admin.route('/state', methods=['POST'])
@login_required
def force_round_state():
    data = _json_body()
    status = data.get('status')
    if not status:
        raise InvalidRequest('Missing status')
    if status not in STATUSES:
        raise InvalidRequest('Invalid status')

    raw_question_id = _requested_question_id(data)
    round_no = _positive_int(data.get('round', 1), 'Invalid round')

    if status == 'standby':
        next_state = Standby()
    elif status == 'finished':
        next_state = Finished()
    elif status == 'active':
        if not raw_question_id:
            raise InvalidRequest('For status=active, question.id is required')
        question = _resolve_question(_positive_int(raw_question_id, 'Invalid question id'))
        next_state = Active.open(question, round_no, quiz.scheduler.time_limit_sec)
    elif status == 'closed':
        if raw_question_id:
            question = _resolve_question(_positive_int(raw_question_id, 'Invalid question id'))
        else:
            # Close whatever question the round is currently on
            current = quiz.get_state()
            question = current_question(current)
            if question is None:
                raise InvalidRequest('For status=closed, question.id is required when no round is running')
            if 'round' not in data:
                round_no = current.round
        next_state = Closed(question=question, round=round_no)
    else:
        if not raw_question_id:
            raise InvalidRequest('For status=result, question.id is required')
        question = _resolve_question(_positive_int(raw_question_id, 'Invalid question id'))
        choices = tuple(Choice.from_model(c) for c in persistence.correct_choices_for(question.id))
        next_state = Result(question=question, round=round_no, correct_choices=choices)

    current_app.logger.info(f"[admin] force status={next_state.status}")
    quiz.set_state(next_state)
    return _state_response()


@admin.route('/start', methods=['POST'])
@login_required
def start_quiz():
    data = _json_body(allow_empty=True)
    raw_question_id = _requested_question_id(data)
    question_id = _positive_int(1 if raw_question_id is None else raw_question_id, 'Invalid question id')
    round_no = _positive_int(data.get('round', 1), 'Invalid round')

    question = _resolve_question(question_id)
    quiz.set_state(Active.open(question, round_no, quiz.scheduler.time_limit_sec))
    current_app.logger.info(f"[admin] start question={question.id} round={round_no}")
    return _state_response()


@admin.route('/reset', methods=['POST'])
@login_required
def reset_quiz():
    persistence.require_config()
    size = int(current_app.config.get('CARD_SIZE', 25))

    deleted = UserAnswer.query.delete()
    cards = Card.query.order_by(Card.id).with_for_update().all()
    for card in cards:
        card.seed = json.dumps(generate_seed(size))
        card.punch = '[]'
        db.session.add(card)
    db.session.commit()
    current_app.logger.info(f"[admin] reset answers={deleted} cards={len(cards)}")

    quiz.set_state(Standby())
    return _state_response()

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import IntegrityError

from bingoquiz import db, persistence, quiz
from bingoquiz.exceptions import (
    ChoiceNotFound,
    InvalidRequest,
    QuestionNotFound,
    RoundNotAccepting,
    UserNotFound,
)
from bingoquiz.models import Card, Choice, Question, User, UserAnswer
from bingoquiz.services.quiz import Active
from bingoquiz.services.quiz.state import current_question

players = Blueprint('players', __name__)


def _int_field(value, name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f'Invalid {name}')


@players.route('/signup', methods=['POST'])
def signup():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form
    username = str(data.get('username') or '').strip()
    if not username:
        return jsonify({'error': 'username is required'}), 400

    persistence.require_config()
    card = Card(size=int(current_app.config.get('CARD_SIZE', 25)))
    db.session.add(card)
    db.session.flush()
    user = User(username=username, card_id=card.id)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"[signup] user={user.id} card={card.id}")

    return jsonify({'ok': True, 'user': user.to_dict(), 'card': card.to_dict()}), 201


@players.route('/quiz/answer', methods=['POST'])
def submit_answer():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidRequest('Invalid JSON body')
    if not data.get('user_id'):
        raise InvalidRequest('Missing user_id in request body')
    if not data.get('question_id'):
        raise InvalidRequest('Missing question_id in request body')
    if not data.get('choice_id'):
        # Nothing picked: accepted, nothing stored
        return jsonify({'ok': True})

    user_id = _int_field(data['user_id'], 'user_id')
    question_id = _int_field(data['question_id'], 'question_id')
    choice_id = _int_field(data['choice_id'], 'choice_id')

    persistence.require_config()
    if db.session.get(User, user_id) is None:
        raise UserNotFound(user_id)
    if db.session.get(Question, question_id) is None:
        raise QuestionNotFound(question_id)
    if db.session.get(Choice, choice_id) is None:
        raise ChoiceNotFound(choice_id)

    state = quiz.get_state()
    if not (isinstance(state, Active) and state.question.id == question_id):
        raise RoundNotAccepting('Not accepting answers for this question')

    answer = UserAnswer.query.filter_by(user_id=user_id, question_id=question_id).first()
    if answer:
        answer.choice_id = choice_id
    else:
        db.session.add(UserAnswer(user_id=user_id, question_id=question_id, choice_id=choice_id))
    try:
        db.session.commit()
    except IntegrityError:
        # Lost an insert race against a concurrent submission for the same pair
        db.session.rollback()
        UserAnswer.query.filter_by(user_id=user_id, question_id=question_id).update({'choice_id': choice_id})
        db.session.commit()

    return jsonify({'ok': True})


@players.route('/quiz/user-status', methods=['GET'])
def user_status():
    raw_id = request.args.get('user_id')
    if not raw_id:
        raise InvalidRequest('Missing user_id query parameter')
    user_id = _int_field(raw_id, 'user_id')

    persistence.require_config()
    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)

    choices = persistence.all_choice_contents()
    answers = UserAnswer.query.filter_by(user_id=user.id)
    question = current_question(quiz.get_state())
    if question is not None:
        answers = answers.filter_by(question_id=question.id)
    answer = answers.order_by(UserAnswer.id.desc()).first()

    return jsonify({
        'choices': list(choices.values()),
        'bingo': {
            'seed': user.card.seed_indices if user.card else [],
            'punch': user.card.punched_indices if user.card else [],
        },
        'round_status': {
            'answered': answer is not None,
            'choice_id': answer.choice_id if answer else None,
        },
    })

"""Persistence gateway used by the round orchestrator.

Thin query helpers over the Flask-SQLAlchemy session. Each one refuses to
run against an unconfigured store, so callers can tell "not configured"
apart from "no rows".
"""

import json
from typing import Dict, List, Optional, Sequence, Tuple

from flask import current_app

from bingoquiz import db
from bingoquiz.exceptions import PersistenceNotConfigured
from bingoquiz.models import Card, Choice, CorrectAnswer, Question, User, UserAnswer


def has_config() -> bool:
    return bool(current_app.config.get('QUIZ_DB_CONFIGURED'))


def require_config() -> None:
    if not has_config():
        raise PersistenceNotConfigured()


def get_question(question_id: int) -> Optional[Question]:
    require_config()
    return db.session.get(Question, question_id)


def correct_choice_ids(question_id: int) -> List[int]:
    require_config()
    rows = (
        db.session.query(CorrectAnswer.choice_id)
        .filter(CorrectAnswer.question_id == question_id)
        .order_by(CorrectAnswer.choice_id)
        .all()
    )
    return [int(r.choice_id) for r in rows]


def choices_by_ids(choice_ids: Sequence[int]) -> List[Choice]:
    require_config()
    if not choice_ids:
        return []
    return Choice.query.filter(Choice.id.in_(list(choice_ids))).order_by(Choice.id).all()


def correct_choices_for(question_id: int) -> List[Choice]:
    require_config()
    return (
        Choice.query.join(CorrectAnswer, CorrectAnswer.choice_id == Choice.id)
        .filter(CorrectAnswer.question_id == question_id)
        .order_by(Choice.id)
        .all()
    )


def answers_with_cards(question_id: int) -> List[Tuple[int, int, int]]:
    """Every answer for the question as ``(user_id, card_id, choice_id)``."""
    require_config()
    rows = (
        db.session.query(UserAnswer.user_id, User.card_id, UserAnswer.choice_id)
        .join(User, User.id == UserAnswer.user_id)
        .filter(UserAnswer.question_id == question_id)
        .all()
    )
    return [(int(r.user_id), int(r.card_id), int(r.choice_id)) for r in rows]


def card_lock_query(card_id: int):
    return (
        Card.query.filter(Card.id == card_id)
        .with_for_update(nowait=False)
        .populate_existing()
    )


def lock_card(card_id: int) -> Optional[Card]:
    """Load a card row holding an exclusive row lock until the next commit/rollback."""
    require_config()
    return card_lock_query(card_id).first()


def save_card_punch(card: Card, punch: List[int]) -> None:
    card.punch = json.dumps(punch)
    db.session.add(card)
    db.session.commit()


def all_choice_contents() -> Dict[int, str]:
    require_config()
    return {c.id: c.content for c in Choice.query.order_by(Choice.id).all()}

from typing import Iterable, List

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from bingoquiz import db
from bingoquiz import persistence
from bingoquiz.exceptions import PersistenceNotConfigured
from .state import Choice, Closed, Result


def punch_index_for(question_id: int) -> int:
    """Card index marked when a player answers ``question_id`` correctly.

    Questions are numbered densely from 1 and card seeds are permutations
    of ``0..CARD_SIZE-1``, so question N lands on index N-1. Gaps in the
    question ids shift every later question onto the wrong cell.
    """
    return int(question_id) - 1


def find_winning_cards(question_id: int, correct_ids: Iterable[int]) -> List[int]:
    """Distinct card ids whose owner picked a correct choice, ascending."""
    correct = set(correct_ids)
    if not correct:
        return []
    winners = {card_id for _user_id, card_id, choice_id in persistence.answers_with_cards(question_id)
               if choice_id in correct}
    return sorted(winners)


def mark_card(card_id: int, index: int) -> bool:
    """Add ``index`` to the card's punch set under a row lock.

    Returns True when the card changed. The lock is released by the commit
    (or rollback) that ends this call.
    """
    try:
        card = persistence.lock_card(card_id)
        if card is None:
            db.session.rollback()
            current_app.logger.warning(f"[scoring] card={card_id} vanished before punch")
            return False
        if not 0 <= index < len(card.seed_indices):
            db.session.rollback()
            current_app.logger.warning(f"[scoring] card={card_id} index={index} outside board, skipped")
            return False
        punch = card.punched_indices
        if index in punch:
            db.session.rollback()
            return False
        punch.append(index)
        persistence.save_card_punch(card, punch)
        return True
    except SQLAlchemyError:
        db.session.rollback()
        raise


def score_round(closed: Closed) -> Result:
    """Mark the winners' cards for a closed round and build its Result.

    Persistence failures never escape: the round still gets a Result, with
    no revealed choices.
    """
    question = closed.question
    try:
        correct_ids = persistence.correct_choice_ids(question.id)
        if not correct_ids:
            current_app.logger.info(f"[scoring] question={question.id} has no correct choices")
            return Result(question=question, round=closed.round, correct_choices=())

        index = punch_index_for(question.id)
        winners = find_winning_cards(question.id, correct_ids)
        punched = [card_id for card_id in winners if mark_card(card_id, index)]
        current_app.logger.info(
            f"[scoring] question={question.id} round={closed.round} winners={winners} punched={punched} index={index}"
        )

        choices = tuple(Choice.from_model(c) for c in persistence.choices_by_ids(correct_ids))
        return Result(question=question, round=closed.round, correct_choices=choices)
    except (SQLAlchemyError, PersistenceNotConfigured) as exc:
        db.session.rollback()
        current_app.logger.error(f"[scoring] question={question.id} failed, revealing nothing: {exc}")
        return Result(question=question, round=closed.round, correct_choices=())

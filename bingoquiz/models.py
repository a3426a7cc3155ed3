from bingoquiz import db
from datetime import datetime, timezone
import json
import random


def generate_seed(size=25):
    """Shuffle the card indices ``0..size-1`` into a player-specific layout."""
    seed = list(range(size))
    random.shuffle(seed)
    return seed


def decode_indices(raw):
    """Decode a JSON list of board indices; anything malformed decodes to []."""
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(values, list):
        return []
    out = []
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int):
            return []
        out.append(v)
    return out


class Card(db.Model):
    __tablename__ = 'card'
    id = db.Column(db.Integer, primary_key=True)
    seed = db.Column(db.Text, nullable=False)  # JSON-encoded permutation of board indices
    punch = db.Column(db.Text, nullable=False, default='[]')  # JSON-encoded marked indices
    users = db.relationship('User', back_populates='card')

    def __init__(self, **kwargs):
        size = kwargs.pop('size', 25)
        super(Card, self).__init__(**kwargs)
        if not self.seed:
            self.seed = json.dumps(generate_seed(size))
        if self.punch is None:
            self.punch = '[]'

    @property
    def seed_indices(self):
        return decode_indices(self.seed)

    @property
    def punched_indices(self):
        return decode_indices(self.punch)

    def to_dict(self):
        return {
            'id': self.id,
            'seed': self.seed_indices,
            'punch': self.punched_indices,
        }


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)
    card_id = db.Column(db.Integer, db.ForeignKey('card.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    card = db.relationship('Card', back_populates='users')

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'card_id': self.card_id,
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)

    def to_dict(self):
        return {'id': self.id, 'context': self.content}


class Choice(db.Model):
    __tablename__ = 'choice'
    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)

    def to_dict(self):
        return {'id': self.id, 'context': self.content}


class CorrectAnswer(db.Model):
    __tablename__ = 'correct_answer'
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), primary_key=True)
    choice_id = db.Column(db.Integer, db.ForeignKey('choice.id'), primary_key=True)


class UserAnswer(db.Model):
    __tablename__ = 'user_answer'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'question_id', name='uq_user_answer_user_question'),
    )
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    choice_id = db.Column(db.Integer, db.ForeignKey('choice.id'), nullable=False)

    user = db.relationship('User', foreign_keys=[user_id])

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'question_id': self.question_id,
            'choice_id': self.choice_id,
        }

"""Round state values.

A round state is an immutable snapshot; transitions replace it with a new
instance. ``to_payload()`` gives the wire form shared by polling, the event
stream and Socket.IO.
"""

import math
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Question:
    id: int
    text: str

    @classmethod
    def from_model(cls, row) -> 'Question':
        return cls(id=int(row.id), text=row.content)

    def to_dict(self):
        return {'id': self.id, 'context': self.text}


@dataclass(frozen=True)
class Choice:
    id: int
    text: str

    @classmethod
    def from_model(cls, row) -> 'Choice':
        return cls(id=int(row.id), text=row.content)

    def to_dict(self):
        return {'id': self.id, 'context': self.text}


@dataclass(frozen=True)
class Standby:
    status = 'standby'

    def to_payload(self):
        return {'status': self.status}


@dataclass(frozen=True)
class Active:
    question: Question
    round: int
    time_limit_sec: int
    deadline: float
    status = 'active'

    @classmethod
    def open(cls, question: Question, round: int, time_limit_sec: int, now: Optional[float] = None) -> 'Active':
        started = time.time() if now is None else now
        return cls(question=question, round=round, time_limit_sec=time_limit_sec,
                   deadline=started + time_limit_sec)

    def to_payload(self):
        return {
            'status': self.status,
            'data': {
                'question': self.question.to_dict(),
                'round': self.round,
                'time_limit_sec': self.time_limit_sec,
                'ended_at': int(math.floor(self.deadline)),
            },
        }


@dataclass(frozen=True)
class Closed:
    question: Question
    round: int
    status = 'closed'

    def to_payload(self):
        return {'status': self.status}


@dataclass(frozen=True)
class Result:
    question: Question
    round: int
    correct_choices: Tuple[Choice, ...] = field(default_factory=tuple)
    status = 'result'

    def to_payload(self):
        return {
            'status': self.status,
            'data': {
                'question': self.question.to_dict(),
                'round': self.round,
                'correct_choice': [c.to_dict() for c in self.correct_choices],
            },
        }


@dataclass(frozen=True)
class Finished:
    status = 'finished'

    def to_payload(self):
        return {'status': self.status}


RoundState = Union[Standby, Active, Closed, Result, Finished]

STATUSES = ('standby', 'active', 'closed', 'result', 'finished')


def current_question(state: RoundState) -> Optional[Question]:
    """The question a state refers to, if any."""
    return getattr(state, 'question', None)

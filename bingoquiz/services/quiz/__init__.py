"""Quiz round services: state values, observers, timers and scoring.

Routes and socket handlers import from here; transport concerns stay out
of the round lifecycle itself.
"""

from .orchestrator import QuizOrchestrator
from .state import Active, Choice, Closed, Finished, Question, Result, RoundState, Standby

__all__ = [
    'QuizOrchestrator',
    'RoundState', 'Standby', 'Active', 'Closed', 'Result', 'Finished',
    'Question', 'Choice',
]

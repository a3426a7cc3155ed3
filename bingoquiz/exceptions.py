"""Quiz error taxonomy.

Every error the API layer turns into a JSON response derives from
``QuizError`` and carries the HTTP status it maps to.
"""


class QuizError(Exception):
    """Base class for all quiz errors."""
    status_code = 500

    def to_dict(self):
        return {'ok': False, 'error': str(self)}


# ---- configuration ----

class PersistenceNotConfigured(QuizError):
    """The relational store has not been configured."""

    def __init__(self, message='Database not configured (set DATABASE_URL)'):
        super().__init__(message)

    def to_dict(self):
        return {'ok': False, 'configured': False, 'message': str(self)}


# ---- not found ----

class NotFound(QuizError):
    status_code = 404
    kind = 'Resource'

    def __init__(self, ident=None):
        self.ident = ident
        super().__init__(f"{self.kind} not found")


class UserNotFound(NotFound):
    kind = 'User'


class QuestionNotFound(NotFound):
    kind = 'Question'


class ChoiceNotFound(NotFound):
    kind = 'Choice'


class CardNotFound(NotFound):
    kind = 'Card'


# ---- request validation ----

class InvalidRequest(QuizError):
    status_code = 400


class RoundNotAccepting(QuizError):
    """Answers are only taken while the matching question is open."""
    status_code = 409

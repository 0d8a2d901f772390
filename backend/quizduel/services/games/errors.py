"""Domain errors raised by the game services.

Every error carries a machine-readable ``kind`` (the error family callers
branch on), a ``code`` naming the concrete condition, the HTTP status the
API layer renders it with, and optional ``data`` for the caller to react to
(for example the category/difficulty pair that ran out of questions).
"""

from typing import Any, Dict, Optional


class GameError(Exception):
    """Base exception for all game engine errors."""

    kind = 'Unexpected'
    status_code = 500
    default_message = 'An unexpected error occurred'

    def __init__(self, message: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            'success': False,
            'message': self.message,
            'error': {'kind': self.kind, 'code': self.code},
        }
        if self.data is not None:
            payload['data'] = self.data
        return payload


# ---- Families ----

class NotFound(GameError):
    kind = 'NotFound'
    status_code = 404
    default_message = 'Not found'


class InvalidInput(GameError):
    kind = 'InvalidInput'
    status_code = 400
    default_message = 'Invalid input'


class Forbidden(GameError):
    kind = 'Forbidden'
    status_code = 403
    default_message = 'Action not allowed'


class Conflict(GameError):
    kind = 'Conflict'
    status_code = 409
    default_message = 'Conflicting request'


class Exhausted(GameError):
    kind = 'Exhausted'
    status_code = 422
    default_message = 'Nothing left to serve'


class Unexpected(GameError):
    pass


# ---- Concrete conditions ----

class InvalidName(InvalidInput):
    default_message = 'Invalid player name'


class InvalidAnswer(InvalidInput):
    default_message = 'Answer does not belong to this question'


class NotYourTurn(Forbidden):
    default_message = 'It is not your turn'


class HostOnly(Forbidden):
    default_message = 'Only the host can do that'


class RejoinForbidden(Forbidden):
    default_message = 'You cannot rejoin because you have already participated in the game'


class GameNotJoinable(Forbidden):
    default_message = 'This game is already in progress. New players cannot join'


class CapacityExceeded(Conflict):
    default_message = 'This game is already full'


class DuplicateParticipant(Conflict):
    default_message = 'Player already in this game'


class DuplicateAnswer(Conflict):
    default_message = 'Question already answered'


class AlreadyAttempted(Conflict):
    default_message = 'You already had your attempt at this question'


class InvalidTransition(Conflict):
    default_message = 'That action is not possible in the current phase'


class NoSelection(Conflict):
    default_message = 'Select a category and difficulty first'


class NotEnoughPlayers(Conflict):
    default_message = 'Not enough players to start'


class NoQuestionsAvailable(Exhausted):
    default_message = 'No questions found for selected category and difficulty'


class QuestionsExhausted(Exhausted):
    default_message = 'All questions for this category and difficulty have been used'


class QuotaExhausted(Exhausted):
    default_message = 'No games remaining in your subscription'

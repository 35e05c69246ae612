"""Business-rule errors raised by the game services and their JSON rendering."""

from flask import jsonify
from sqlalchemy.exc import OperationalError


class GameError(Exception):
    code = 'GameError'
    status = 400
    message = 'Request could not be processed'

    def __init__(self, message=None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class NotAuthenticated(GameError):
    code = 'NotAuthenticated'
    status = 401
    message = 'Not logged in'


class AdminRequired(GameError):
    code = 'AdminRequired'
    status = 403
    message = 'Only the lobby admin may do this'


class NotAMember(GameError):
    code = 'NotAMember'
    status = 403
    message = 'You are not a participant in this lobby'


class PlayersOnly(GameError):
    code = 'PlayersOnly'
    status = 403
    message = 'Only players may do this'


class InactiveParticipant(GameError):
    code = 'InactiveParticipant'
    status = 403
    message = 'Only active players may buzz'


class LobbyNotFound(GameError):
    code = 'LobbyNotFound'
    status = 404
    message = 'Lobby not found'


class WrongLobby(GameError):
    code = 'WrongLobby'
    status = 404
    message = 'Question does not belong to this lobby'


class AttemptNotFound(GameError):
    code = 'AttemptNotFound'
    status = 404
    message = 'Buzz attempt not found'


class LobbyFull(GameError):
    code = 'LobbyFull'
    status = 409
    message = 'Lobby is already full'


class InvalidTransition(GameError):
    code = 'InvalidTransition'
    status = 409
    message = 'Question is already active or finished'


class QuestionAlreadyActive(GameError):
    code = 'QuestionAlreadyActive'
    status = 409
    message = 'Another question is already active'


class NoActiveQuestion(GameError):
    code = 'NoActiveQuestion'
    status = 409
    message = 'There is no active question to buzz on'


class TimerExpired(GameError):
    code = 'TimerExpired'
    status = 409
    message = 'The timer has already run out'


class AlreadyBuzzed(GameError):
    code = 'AlreadyBuzzed'
    status = 409
    message = 'You already buzzed on this question'


class AlreadyResolved(GameError):
    code = 'AlreadyResolved'
    status = 409
    message = 'Buzz attempt was already judged'


class QuestionNotActive(GameError):
    code = 'QuestionNotActive'
    status = 409
    message = 'Question is no longer active'


class InvalidCredentials(GameError):
    code = 'InvalidCredentials'
    status = 401
    message = 'Invalid username or password'


class UserExists(GameError):
    code = 'UserExists'
    status = 409
    message = 'Email or username is already taken'


class ValidationError(GameError):
    code = 'ValidationError'
    status = 400
    message = 'Invalid input'


class NoQuestionsSeeded(GameError):
    code = 'NoQuestionsSeeded'
    status = 500
    message = 'No questions available. Run `flask seed-questions` first.'


class CodeGenerationExhausted(GameError):
    code = 'CodeGenerationExhausted'
    status = 503
    message = 'Could not generate a unique lobby code'


def register_error_handlers(app) -> None:
    @app.errorhandler(GameError)
    def handle_game_error(exc: GameError):
        app.logger.info(f"[rejected] {exc.code}: {exc.message}")
        return jsonify(exc.to_dict()), exc.status

    @app.errorhandler(OperationalError)
    def handle_store_unavailable(exc: OperationalError):
        # Not retried here; the caller's transport decides
        app.logger.error(f"[store-unavailable] {exc}")
        return jsonify({'error': 'Data store unavailable, try again', 'code': 'StoreUnavailable'}), 503

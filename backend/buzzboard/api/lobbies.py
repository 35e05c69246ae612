from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from buzzboard.errors import ValidationError
from buzzboard.game_config import (
    QUESTION_TIMER_SECONDS,
    SCORE_EVENTS_DEFAULT_LIMIT,
    SCORE_EVENTS_MAX_LIMIT,
    VERDICTS,
)
from buzzboard.services.game.board import get_board, resolve_question, select_question
from buzzboard.services.game.buzzer import mark_buzz_attempt_result, submit_buzz_attempt
from buzzboard.services.game.scoring import get_lobby_score_events
from buzzboard.services.lobbies import (
    create_lobby,
    get_lobby_by_code,
    join_lobby,
    leave_lobby,
    list_lobbies_for_user,
)
from buzzboard.services.membership import require_participant
from buzzboard.socketio_events import notify_lobby


lobbies = Blueprint('lobbies', __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _int_field(data: dict, key: str, required: bool = True):
    value = data.get(key)
    if value is None:
        if required:
            raise ValidationError(f'{key} is required')
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f'{key} must be an integer')
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f'{key} must be an integer')
    # Ids are stored as signed 64-bit integers
    if not -2 ** 63 <= number < 2 ** 63:
        raise ValidationError(f'{key} is out of range')
    return number


def _verdict_field(data: dict, key: str) -> str:
    verdict = str(data.get(key) or '').upper()
    if verdict not in VERDICTS:
        raise ValidationError(f'{key} must be one of {", ".join(VERDICTS)}')
    return verdict


@lobbies.route('', methods=['GET'])
@login_required
def list_lobbies():
    return jsonify({'lobbies': [lobby.to_dict() for lobby in list_lobbies_for_user(current_user.id)]})


@lobbies.route('', methods=['POST'])
@login_required
def create():
    data = _json_body()
    lobby = create_lobby(current_user.id, data.get('name'))
    return jsonify({'lobby': lobby.to_dict()}), 201


@lobbies.route('/join', methods=['POST'])
@login_required
def join():
    data = _json_body()
    lobby, participant = join_lobby(current_user.id, data.get('code'))
    notify_lobby(lobby.code)
    return jsonify({'lobby': lobby.to_dict(), 'participant': participant.to_dict()})


@lobbies.route('/<string:code>', methods=['GET'])
@login_required
def lobby_detail(code):
    lobby = get_lobby_by_code(code)
    require_participant(lobby.id, current_user.id)
    return jsonify({'lobby': lobby.to_dict()})


@lobbies.route('/<string:code>/leave', methods=['POST'])
@login_required
def leave(code):
    lobby = get_lobby_by_code(code)
    participant = leave_lobby(lobby.id, current_user.id)
    notify_lobby(lobby.code)
    return jsonify({'participant': participant.to_dict()})


@lobbies.route('/<string:code>/board', methods=['GET'])
@login_required
def board(code):
    lobby = get_lobby_by_code(code)
    viewer = require_participant(lobby.id, current_user.id)
    # Answers stay on the admin's screen
    payload = get_board(lobby.id, include_answers=viewer.is_admin)
    return jsonify({
        'board': payload,
        'participants': [p.to_dict() for p in lobby.participants],
        'lobby': lobby.to_dict(include_participants=False),
        'timer_seconds': QUESTION_TIMER_SECONDS,
    })


@lobbies.route('/<string:code>/board/select', methods=['POST'])
@login_required
def select(code):
    lobby = get_lobby_by_code(code)
    data = _json_body()
    state = select_question(lobby.id, _int_field(data, 'question_state_id'), current_user.id)
    notify_lobby(lobby.code)
    return jsonify({'question': state.to_dict(include_answer=True)})


@lobbies.route('/<string:code>/board/resolve', methods=['POST'])
@login_required
def resolve(code):
    lobby = get_lobby_by_code(code)
    data = _json_body()
    state = resolve_question(
        lobby.id,
        _int_field(data, 'question_state_id'),
        current_user.id,
        _verdict_field(data, 'verdict'),
        participant_id=_int_field(data, 'participant_id', required=False),
    )
    notify_lobby(lobby.code)
    return jsonify({'question': state.to_dict(include_answer=True)})


@lobbies.route('/<string:code>/board/buzz', methods=['POST'])
@login_required
def buzz(code):
    lobby = get_lobby_by_code(code)
    attempt = submit_buzz_attempt(lobby.id, current_user.id)
    notify_lobby(lobby.code)
    return jsonify({'attempt': attempt.to_dict()}), 201


@lobbies.route('/<string:code>/board/buzz/<int:attempt_id>/result', methods=['POST'])
@login_required
def buzz_result(code, attempt_id):
    lobby = get_lobby_by_code(code)
    data = _json_body()
    attempt = mark_buzz_attempt_result(lobby.id, attempt_id, current_user.id, _verdict_field(data, 'result'))
    notify_lobby(lobby.code)
    return jsonify({'attempt': attempt.to_dict()})


@lobbies.route('/<string:code>/score-events', methods=['GET'])
@login_required
def score_events(code):
    lobby = get_lobby_by_code(code)
    require_participant(lobby.id, current_user.id)
    raw_limit = request.args.get('limit')
    try:
        limit = int(raw_limit) if raw_limit is not None else SCORE_EVENTS_DEFAULT_LIMIT
    except ValueError:
        raise ValidationError('limit must be an integer')
    if not 1 <= limit <= SCORE_EVENTS_MAX_LIMIT:
        raise ValidationError(f'limit must be between 1 and {SCORE_EVENTS_MAX_LIMIT}')
    return jsonify({'events': get_lobby_score_events(lobby.id, limit)})

import random
from typing import List, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from buzzboard import db
from buzzboard.errors import (
    CodeGenerationExhausted,
    LobbyFull,
    LobbyNotFound,
    NotAuthenticated,
    PlayersOnly,
    ValidationError,
)
from buzzboard.game_config import (
    LOBBY_CODE_ALPHABET,
    LOBBY_CODE_LENGTH,
    LOBBY_CODE_MAX_ATTEMPTS,
    LOBBY_NAME_MAX_LENGTH,
    LOBBY_NAME_MIN_LENGTH,
    MAX_PLAYERS,
    ParticipantState,
    Role,
)
from buzzboard.models import Lobby, Participant
from buzzboard.services.game.board import materialize_board
from buzzboard.services.game.locking import lobby_transaction
from buzzboard.services.membership import require_participant


def generate_lobby_code(length: int = LOBBY_CODE_LENGTH) -> str:
    return ''.join(random.choices(LOBBY_CODE_ALPHABET, k=length))


def _code_taken(code: str) -> bool:
    return Lobby.query.filter_by(code=code).first() is not None


def normalize_code(code) -> str:
    if code is None:
        return ''
    if not isinstance(code, str):
        raise ValidationError('Lobby code must be a string')
    return code.strip().upper()


def create_lobby(user_id: int, name) -> Lobby:
    """Create a lobby, seat the creator as its admin and materialize the board.

    Codes are drawn up to ``LOBBY_CODE_MAX_ATTEMPTS`` times. A code that loses
    the race to a concurrent insert counts as one attempt.
    """
    if user_id is None:
        raise NotAuthenticated()
    name = name.strip() if isinstance(name, str) else ''
    if not (LOBBY_NAME_MIN_LENGTH <= len(name) <= LOBBY_NAME_MAX_LENGTH):
        raise ValidationError(
            f'Lobby name must be {LOBBY_NAME_MIN_LENGTH}-{LOBBY_NAME_MAX_LENGTH} characters'
        )

    for _ in range(LOBBY_CODE_MAX_ATTEMPTS):
        code = generate_lobby_code()
        if _code_taken(code):
            continue
        try:
            lobby = Lobby(name=name, code=code, owner_id=user_id)
            db.session.add(lobby)
            db.session.flush()
            db.session.add(Participant(lobby_id=lobby.id, user_id=user_id, role=Role.ADMIN, seat_index=None))
            materialize_board(lobby.id)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            # Lost a race for the code between the check and the insert
            if Lobby.query.filter_by(code=code).first() is not None:
                current_app.logger.info(f"[lobby-create] code={code} collided, retrying")
                continue
            raise
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(f"[lobby-create] lobby={lobby.id} code={lobby.code} owner={user_id}")
        return lobby

    raise CodeGenerationExhausted()


def get_lobby_by_code(code) -> Lobby:
    normalized = normalize_code(code)
    lobby = Lobby.query.filter_by(code=normalized).first() if normalized else None
    if lobby is None:
        raise LobbyNotFound()
    return lobby


def join_lobby(user_id: int, code) -> Tuple[Lobby, Participant]:
    """Seat a user in the lobby, or reactivate their existing seat."""
    if user_id is None:
        raise NotAuthenticated()
    if not normalize_code(code):
        raise ValidationError('Lobby code is required')
    lobby = get_lobby_by_code(code)

    with lobby_transaction(lobby.id):
        participants = Participant.query.filter_by(lobby_id=lobby.id).all()
        existing = next((p for p in participants if p.user_id == user_id), None)
        if existing is not None:
            if existing.role == Role.PLAYER and existing.state != ParticipantState.ACTIVE:
                existing.state = ParticipantState.ACTIVE
                db.session.add(existing)
                current_app.logger.info(f"[lobby-join] lobby={lobby.id} participant={existing.id} rejoined")
            participant = existing
        else:
            players = [p for p in participants if p.role == Role.PLAYER]
            if len(players) >= MAX_PLAYERS:
                raise LobbyFull()
            taken = {p.seat_index for p in players if p.seat_index is not None}
            seat_index = next(seat for seat in range(MAX_PLAYERS) if seat not in taken)
            participant = Participant(
                lobby_id=lobby.id,
                user_id=user_id,
                role=Role.PLAYER,
                seat_index=seat_index,
            )
            db.session.add(participant)
            db.session.flush()
            current_app.logger.info(f"[lobby-join] lobby={lobby.id} participant={participant.id} seat={seat_index}")
    return lobby, participant


def leave_lobby(lobby_id: int, user_id: int) -> Participant:
    """Mark a player as left. The seat is kept so a later join reactivates it."""
    with lobby_transaction(lobby_id):
        participant = require_participant(lobby_id, user_id)
        if participant.role != Role.PLAYER:
            raise PlayersOnly('The admin cannot leave their own lobby')
        participant.state = ParticipantState.LEFT
        db.session.add(participant)
        current_app.logger.info(f"[lobby-leave] lobby={lobby_id} participant={participant.id}")
    return participant


def list_lobbies_for_user(user_id: int) -> List[Lobby]:
    if user_id is None:
        raise NotAuthenticated()
    return (
        Lobby.query.join(Participant)
        .filter(Participant.user_id == user_id)
        .order_by(Lobby.updated_at.desc(), Lobby.id.desc())
        .all()
    )

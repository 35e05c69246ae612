from typing import Optional

from buzzboard.errors import AdminRequired, NotAMember, NotAuthenticated
from buzzboard.game_config import Role
from buzzboard.models import Participant


def get_participant(lobby_id: int, user_id: int) -> Optional[Participant]:
    if user_id is None:
        raise NotAuthenticated()
    return Participant.query.filter_by(lobby_id=lobby_id, user_id=user_id).first()


def require_participant(lobby_id: int, user_id: int) -> Participant:
    participant = get_participant(lobby_id, user_id)
    if participant is None:
        raise NotAMember()
    return participant


def require_admin(lobby_id: int, user_id: int) -> Participant:
    if user_id is None:
        raise NotAuthenticated()
    admin = Participant.query.filter_by(lobby_id=lobby_id, user_id=user_id, role=Role.ADMIN).first()
    if admin is None:
        raise AdminRequired()
    return admin

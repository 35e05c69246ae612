from flask_login import current_user
from flask_socketio import join_room, leave_room, emit

from buzzboard import socketio
from buzzboard.models import Lobby, Participant

NAMESPACE = '/ws'


def lobby_room(lobby_code: str) -> str:
    return f"lobby:{lobby_code.upper()}"


def notify_lobby(lobby_code: str) -> None:
    """Tell every client in the lobby room to refetch the board."""
    socketio.emit('state_update', {'lobby_code': lobby_code}, to=lobby_room(lobby_code), namespace=NAMESPACE)


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_join_lobby(data):
    lobby_code = str((data or {}).get('lobby_code') or '').strip().upper()
    if not lobby_code:
        emit('error', {'error': 'lobby_code is required'})
        return
    if not current_user.is_authenticated:
        emit('error', {'error': 'Not logged in'})
        return
    lobby = Lobby.query.filter_by(code=lobby_code).first()
    if lobby is None:
        emit('error', {'error': 'Lobby not found'})
        return
    if Participant.query.filter_by(lobby_id=lobby.id, user_id=current_user.id).first() is None:
        emit('error', {'error': 'You are not a participant in this lobby'})
        return
    room = lobby_room(lobby_code)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_lobby(data):
    lobby_code = str((data or {}).get('lobby_code') or '').strip().upper()
    if not lobby_code:
        emit('error', {'error': 'lobby_code is required'})
        return
    room = lobby_room(lobby_code)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('join_lobby', handle_join_lobby, namespace=NAMESPACE)
    socketio.on_event('leave_lobby', handle_leave_lobby, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)

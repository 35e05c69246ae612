from buzzboard import db, bcrypt
from buzzboard.game_config import (
    BuzzResult,
    LobbyStatus,
    ParticipantState,
    QuestionStatus,
    Role,
)
from flask_login import UserMixin
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo so every column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() + 'Z' if value else None


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(64), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        # bcrypt rejects input longer than 72 bytes
        if not isinstance(password, str) or len(password.encode('utf-8')) > 72:
            return False
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'display_name': self.display_name,
        }


class Lobby(db.Model):
    __tablename__ = 'lobby'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), unique=True, nullable=False, index=True)
    name = db.Column(db.String(50), nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    status = db.Column(db.String(32), default=LobbyStatus.LOBBY, nullable=False)  # lobby, in_progress, completed
    current_round = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    owner = db.relationship('User')
    participants = db.relationship(
        'Participant',
        back_populates='lobby',
        order_by=lambda: [Participant.role, Participant.seat_index],
    )

    def to_dict(self, include_participants=True):
        data = {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'owner_id': self.owner_id,
            'status': self.status,
            'current_round': self.current_round,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }
        if include_participants:
            data['participants'] = [p.to_dict() for p in self.participants]
        return data


class Participant(db.Model):
    __tablename__ = 'participant'
    __table_args__ = (
        db.UniqueConstraint('lobby_id', 'user_id', name='uq_participant_lobby_user'),
        db.UniqueConstraint('lobby_id', 'seat_index', name='uq_participant_lobby_seat'),
    )
    id = db.Column(db.Integer, primary_key=True)
    lobby_id = db.Column(db.Integer, db.ForeignKey('lobby.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    role = db.Column(db.String(16), default=Role.PLAYER, nullable=False)
    # Admins have no seat
    seat_index = db.Column(db.Integer, nullable=True)
    state = db.Column(db.String(16), default=ParticipantState.ACTIVE, nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    lobby = db.relationship('Lobby', back_populates='participants')
    user = db.relationship('User')

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'role': self.role,
            'seat_index': self.seat_index,
            'state': self.state,
            'score': self.score,
            'user': self.user.to_dict() if self.user else None,
        }


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(64), nullable=False)
    category_index = db.Column(db.Integer, nullable=False)
    round_index = db.Column(db.Integer, nullable=False)
    base_value = db.Column(db.Integer, nullable=False)
    prompt = db.Column(db.Text, nullable=False)
    answer = db.Column(db.Text, nullable=False)
    is_daily_double = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self, include_answer=False):
        data = {
            'id': self.id,
            'category': self.category,
            'category_index': self.category_index,
            'round_index': self.round_index,
            'base_value': self.base_value,
            'prompt': self.prompt,
        }
        if include_answer:
            data['answer'] = self.answer
        return data


class QuestionState(db.Model):
    __tablename__ = 'question_state'
    __table_args__ = (
        db.UniqueConstraint('lobby_id', 'question_id', name='uq_question_state_lobby_question'),
        # At most one ACTIVE question per lobby, enforced by the store as well
        db.Index(
            'uq_question_state_single_active',
            'lobby_id',
            unique=True,
            sqlite_where=db.text("status = 'ACTIVE'"),
            postgresql_where=db.text("status = 'ACTIVE'"),
        ),
    )
    id = db.Column(db.Integer, primary_key=True)
    lobby_id = db.Column(db.Integer, db.ForeignKey('lobby.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False)
    round_index = db.Column(db.Integer, nullable=False)
    value = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), default=QuestionStatus.UNPLAYED, nullable=False)
    activated_at = db.Column(db.DateTime, nullable=True)
    timer_ends_at = db.Column(db.DateTime, nullable=True)
    selected_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    resolved_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    question = db.relationship('Question')
    buzz_attempts = db.relationship(
        'BuzzerAttempt',
        back_populates='question_state',
        order_by='BuzzerAttempt.order_index',
    )

    def to_dict(self, include_answer=False, include_attempts=True):
        data = {
            'id': self.id,
            'lobby_id': self.lobby_id,
            'round_index': self.round_index,
            'value': self.value,
            'status': self.status,
            'activated_at': _iso(self.activated_at),
            'timer_ends_at': _iso(self.timer_ends_at),
            'selected_by_id': self.selected_by_id,
            'resolved_by_id': self.resolved_by_id,
            'question': self.question.to_dict(include_answer=include_answer),
        }
        if include_attempts:
            data['buzz_attempts'] = [a.to_dict() for a in self.buzz_attempts]
        return data


class BuzzerAttempt(db.Model):
    __tablename__ = 'buzzer_attempt'
    __table_args__ = (
        db.UniqueConstraint('question_state_id', 'participant_id', name='uq_buzzer_attempt_participant'),
        db.UniqueConstraint('question_state_id', 'order_index', name='uq_buzzer_attempt_order'),
    )
    id = db.Column(db.Integer, primary_key=True)
    lobby_id = db.Column(db.Integer, db.ForeignKey('lobby.id'), nullable=False, index=True)
    question_state_id = db.Column(db.Integer, db.ForeignKey('question_state.id'), nullable=False, index=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participant.id'), nullable=False)
    order_index = db.Column(db.Integer, nullable=False)
    result = db.Column(db.String(16), default=BuzzResult.PENDING, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    question_state = db.relationship('QuestionState', back_populates='buzz_attempts')
    participant = db.relationship('Participant')

    def to_dict(self):
        participant = self.participant
        return {
            'id': self.id,
            'question_state_id': self.question_state_id,
            'participant_id': self.participant_id,
            'order_index': self.order_index,
            'result': self.result,
            'created_at': _iso(self.created_at),
            'participant': {
                'id': participant.id,
                'seat_index': participant.seat_index,
                'user': participant.user.to_dict(),
            } if participant else None,
        }


class ScoreEvent(db.Model):
    __tablename__ = 'score_event'
    id = db.Column(db.Integer, primary_key=True)
    lobby_id = db.Column(db.Integer, db.ForeignKey('lobby.id'), nullable=False, index=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participant.id'), nullable=False, index=True)
    question_state_id = db.Column(db.Integer, db.ForeignKey('question_state.id'), nullable=True)
    delta = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(32), nullable=False)
    # Acting user (the admin who judged)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    participant = db.relationship('Participant')
    question_state = db.relationship('QuestionState')

    def to_dict(self):
        state = self.question_state
        return {
            'id': self.id,
            'delta': self.delta,
            'reason': self.reason,
            'created_at': _iso(self.created_at),
            'participant': {
                'id': self.participant_id,
                'seat_index': self.participant.seat_index,
                'display_name': self.participant.user.display_name,
            },
            'question': {
                'id': state.id,
                'category': state.question.category,
                'value': state.value,
            } if state else None,
        }

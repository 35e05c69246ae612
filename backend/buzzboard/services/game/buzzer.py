"""Buzzer queue for the active question.

Attempts are appended in arrival order (``order_index`` 0, 1, 2, ...) and
judged by the admin. The queue does not enforce judging order; clients work
through the lowest pending ``order_index`` first.
"""

from flask import current_app
from sqlalchemy.exc import IntegrityError

from buzzboard import db
from buzzboard.errors import (
    AlreadyBuzzed,
    AlreadyResolved,
    AttemptNotFound,
    InactiveParticipant,
    NoActiveQuestion,
    PlayersOnly,
    QuestionNotActive,
    TimerExpired,
    ValidationError,
)
from buzzboard.game_config import VERDICTS, BuzzResult, ParticipantState, QuestionStatus, Role
from buzzboard.models import BuzzerAttempt, QuestionState, utcnow
from buzzboard.services.membership import require_admin, require_participant
from .board import apply_verdict
from .locking import lobby_transaction
from .timers import timer_elapsed, timer_window


def submit_buzz_attempt(lobby_id: int, user_id: int) -> BuzzerAttempt:
    with lobby_transaction(lobby_id):
        participant = require_participant(lobby_id, user_id)
        if participant.role != Role.PLAYER:
            raise PlayersOnly('Only players may buzz')
        if participant.state != ParticipantState.ACTIVE:
            raise InactiveParticipant()

        active = (
            QuestionState.query.filter_by(lobby_id=lobby_id, status=QuestionStatus.ACTIVE)
            .order_by(QuestionState.updated_at.desc(), QuestionState.id.desc())
            .first()
        )
        if active is None:
            raise NoActiveQuestion()

        # Checked against the deadline itself; expiry may not be materialized yet
        now = utcnow()
        if timer_elapsed(active, now):
            raise TimerExpired()

        existing = BuzzerAttempt.query.filter_by(question_state_id=active.id).all()
        if any(a.participant_id == participant.id for a in existing):
            raise AlreadyBuzzed()

        attempt = BuzzerAttempt(
            lobby_id=lobby_id,
            question_state_id=active.id,
            participant_id=participant.id,
            order_index=len(existing),
        )
        db.session.add(attempt)

        # Every buzz re-arms the countdown
        active.activated_at, active.timer_ends_at = timer_window(now)
        db.session.add(active)

        try:
            db.session.flush()
        except IntegrityError:
            raise AlreadyBuzzed()

        current_app.logger.info(
            f"[buzz] lobby={lobby_id} question_state={active.id} participant={participant.id} "
            f"order={attempt.order_index} deadline={active.timer_ends_at}"
        )
    return attempt


def mark_buzz_attempt_result(lobby_id: int, attempt_id: int, acting_user_id: int, result: str) -> BuzzerAttempt:
    """Judge one buzz. CORRECT/INCORRECT are scored through the question verdict."""
    with lobby_transaction(lobby_id):
        require_admin(lobby_id, acting_user_id)
        if result not in VERDICTS:
            raise ValidationError(f'result must be one of {", ".join(VERDICTS)}')

        attempt = db.session.get(BuzzerAttempt, attempt_id) if attempt_id is not None else None
        if attempt is None or attempt.lobby_id != lobby_id:
            raise AttemptNotFound()
        if attempt.result != BuzzResult.PENDING:
            raise AlreadyResolved()
        if attempt.question_state.status != QuestionStatus.ACTIVE:
            raise QuestionNotActive()

        attempt.result = result
        db.session.add(attempt)
        db.session.flush()

        if result in (BuzzResult.CORRECT, BuzzResult.INCORRECT):
            apply_verdict(
                lobby_id,
                attempt.question_state_id,
                acting_user_id,
                result,
                participant_id=attempt.participant_id,
            )

        current_app.logger.info(
            f"[buzz-result] lobby={lobby_id} attempt={attempt.id} participant={attempt.participant_id} result={result}"
        )
    return attempt

import math
from typing import Optional

from sqlalchemy import func

from buzzboard import db
from buzzboard.game_config import SCORE_EVENTS_DEFAULT_LIMIT
from buzzboard.models import Participant, QuestionState, ScoreEvent


def incorrect_penalty(value: int) -> int:
    return math.ceil(value / 2)


def record_score_event(
    participant: Participant,
    delta: int,
    reason: str,
    acting_user_id: int,
    question_state: Optional[QuestionState] = None,
) -> ScoreEvent:
    """Apply a score delta and append its ledger entry.

    The only place that changes ``Participant.score``; the cached counter and
    the ledger are written in the caller's transaction so they never diverge.
    """
    participant.score = (participant.score or 0) + delta
    event = ScoreEvent(
        lobby_id=participant.lobby_id,
        participant_id=participant.id,
        question_state_id=question_state.id if question_state else None,
        delta=delta,
        reason=reason,
        user_id=acting_user_id,
    )
    db.session.add(participant)
    db.session.add(event)
    return event


def ledger_score(participant_id: int) -> int:
    total = db.session.query(func.coalesce(func.sum(ScoreEvent.delta), 0)).filter(
        ScoreEvent.participant_id == participant_id
    ).scalar()
    return int(total)


def get_lobby_score_events(lobby_id: int, limit: int = SCORE_EVENTS_DEFAULT_LIMIT):
    """Most recent ledger entries of a lobby, newest first."""
    events = (
        ScoreEvent.query.filter_by(lobby_id=lobby_id)
        .order_by(ScoreEvent.created_at.desc(), ScoreEvent.id.desc())
        .limit(limit)
        .all()
    )
    return [event.to_dict() for event in events]

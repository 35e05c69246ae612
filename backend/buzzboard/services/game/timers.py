"""Question countdowns.

There is no background timer: deadlines are stored on the question state and
checked whenever a request needs the current status. Expiry is pull-based and
materialized on the next board read (or selection).
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from flask import current_app

from buzzboard import db
from buzzboard.game_config import QUESTION_TIMER_SECONDS, BuzzResult, QuestionStatus
from buzzboard.models import BuzzerAttempt, QuestionState, utcnow


def timer_window(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Return (activated_at, timer_ends_at) for a countdown starting now."""
    started = now or utcnow()
    return started, started + timedelta(seconds=QUESTION_TIMER_SECONDS)


def timer_elapsed(state: QuestionState, now: Optional[datetime] = None) -> bool:
    if state.timer_ends_at is None:
        return False
    return state.timer_ends_at <= (now or utcnow())


def close_pending_buzzers(question_state_id: int) -> int:
    pending = BuzzerAttempt.query.filter_by(
        question_state_id=question_state_id, result=BuzzResult.PENDING
    ).all()
    for attempt in pending:
        attempt.result = BuzzResult.SKIPPED
        db.session.add(attempt)
    return len(pending)


def expire_elapsed_questions(lobby_id: int, now: Optional[datetime] = None) -> List[int]:
    """Discard ACTIVE questions whose deadline has passed. Returns their ids."""
    now = now or utcnow()
    expired = QuestionState.query.filter(
        QuestionState.lobby_id == lobby_id,
        QuestionState.status == QuestionStatus.ACTIVE,
        QuestionState.timer_ends_at <= now,
    ).all()
    for state in expired:
        state.status = QuestionStatus.DISCARDED
        state.activated_at = None
        state.timer_ends_at = None
        db.session.add(state)
        skipped = close_pending_buzzers(state.id)
        current_app.logger.info(
            f"[timer-expire] lobby={lobby_id} question_state={state.id} skipped_buzzers={skipped}"
        )
    if expired:
        # Flush now so a following activation never collides with the single-active index
        db.session.flush()
    return [state.id for state in expired]

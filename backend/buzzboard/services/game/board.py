from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from buzzboard import db
from buzzboard.errors import (
    InvalidTransition,
    NoQuestionsSeeded,
    NotAMember,
    QuestionAlreadyActive,
    ValidationError,
    WrongLobby,
)
from buzzboard.game_config import (
    VERDICTS,
    BuzzResult,
    LobbyStatus,
    QuestionStatus,
    ScoreReason,
)
from buzzboard.models import Lobby, Participant, Question, QuestionState
from buzzboard.services.membership import require_admin
from .locking import lobby_transaction
from .scoring import incorrect_penalty, record_score_event
from .timers import close_pending_buzzers, expire_elapsed_questions, timer_window


def materialize_board(lobby_id: int) -> int:
    """Create one UNPLAYED state per catalog question unless the board exists.

    Runs inside the caller's transaction. Returns the number of states created.
    """
    if QuestionState.query.filter_by(lobby_id=lobby_id).first() is not None:
        return 0

    questions = Question.query.order_by(
        Question.round_index, Question.category_index, Question.base_value
    ).all()
    if not questions:
        raise NoQuestionsSeeded()

    for question in questions:
        db.session.add(QuestionState(
            lobby_id=lobby_id,
            question_id=question.id,
            round_index=question.round_index,
            value=question.base_value,
            status=QuestionStatus.UNPLAYED,
        ))
    db.session.flush()
    current_app.logger.info(f"[board] lobby={lobby_id} materialized {len(questions)} questions")
    return len(questions)


def ensure_board(lobby_id: int) -> None:
    with lobby_transaction(lobby_id):
        materialize_board(lobby_id)


def sync_lobby_status(lobby_id: int) -> None:
    """Mark the lobby completed once nothing is left to play."""
    lobby = db.session.get(Lobby, lobby_id)
    remaining = QuestionState.query.filter(
        QuestionState.lobby_id == lobby_id,
        QuestionState.status.in_([QuestionStatus.UNPLAYED, QuestionStatus.ACTIVE]),
    ).count()
    if remaining == 0 and lobby.status != LobbyStatus.COMPLETED:
        lobby.status = LobbyStatus.COMPLETED
        db.session.add(lobby)
        current_app.logger.info(f"[finish] lobby={lobby_id} all questions played")


def get_board(lobby_id: int, include_answers: bool = False):
    """Return the lobby's board grouped by round and category.

    Elapsed questions are discarded first, so the snapshot is fresh as of this
    call.
    """
    with lobby_transaction(lobby_id):
        materialize_board(lobby_id)
        if expire_elapsed_questions(lobby_id):
            sync_lobby_status(lobby_id)

    states = (
        QuestionState.query.join(Question)
        .filter(QuestionState.lobby_id == lobby_id)
        .order_by(QuestionState.round_index, Question.category_index, QuestionState.value)
        .all()
    )

    rounds = {}
    for state in states:
        categories = rounds.setdefault(state.round_index, {})
        bucket = categories.setdefault(state.question.category_index, {
            'category': state.question.category,
            'category_index': state.question.category_index,
            'questions': [],
        })
        bucket['questions'].append(state.to_dict(include_answer=include_answers))

    return [
        {
            'round_index': round_index,
            'categories': [categories[idx] for idx in sorted(categories)],
        }
        for round_index, categories in sorted(rounds.items())
    ]


def _get_lobby_state(lobby_id: int, question_state_id: int) -> QuestionState:
    state = db.session.get(QuestionState, question_state_id) if question_state_id is not None else None
    if state is None or state.lobby_id != lobby_id:
        raise WrongLobby()
    return state


def select_question(lobby_id: int, question_state_id: int, acting_user_id: int) -> QuestionState:
    """Activate an unplayed question and start its countdown."""
    with lobby_transaction(lobby_id):
        require_admin(lobby_id, acting_user_id)
        # A stale ACTIVE question past its deadline must not block the next pick
        expire_elapsed_questions(lobby_id)

        other_active = QuestionState.query.filter(
            QuestionState.lobby_id == lobby_id,
            QuestionState.status == QuestionStatus.ACTIVE,
            QuestionState.id != question_state_id,
        ).first()
        if other_active is not None:
            raise QuestionAlreadyActive()

        state = _get_lobby_state(lobby_id, question_state_id)
        if state.status != QuestionStatus.UNPLAYED:
            raise InvalidTransition()

        state.status = QuestionStatus.ACTIVE
        state.activated_at, state.timer_ends_at = timer_window()
        state.selected_by_id = acting_user_id
        db.session.add(state)

        lobby = db.session.get(Lobby, lobby_id)
        if lobby.status == LobbyStatus.LOBBY:
            lobby.status = LobbyStatus.IN_PROGRESS
        lobby.current_round = state.round_index
        db.session.add(lobby)

        try:
            db.session.flush()
        except IntegrityError:
            raise QuestionAlreadyActive()

        current_app.logger.info(
            f"[select] lobby={lobby_id} question_state={state.id} value={state.value} deadline={state.timer_ends_at}"
        )
    return state


def _close_question(state: QuestionState, status: str) -> int:
    state.status = status
    state.activated_at = None
    state.timer_ends_at = None
    db.session.add(state)
    return close_pending_buzzers(state.id)


def apply_verdict(
    lobby_id: int,
    question_state_id: int,
    acting_user_id: int,
    verdict: str,
    participant_id: Optional[int] = None,
) -> QuestionState:
    """Judge a question inside the caller's transaction.

    CORRECT and SKIPPED close the question. INCORRECT only deducts points:
    the question stays ACTIVE with its timer running so other players can
    still buzz.
    """
    require_admin(lobby_id, acting_user_id)
    if verdict not in VERDICTS:
        raise ValidationError(f'verdict must be one of {", ".join(VERDICTS)}')

    state = _get_lobby_state(lobby_id, question_state_id)

    if verdict != BuzzResult.SKIPPED and participant_id is None:
        raise ValidationError('participant_id is required for this verdict')
    if verdict in (BuzzResult.CORRECT, BuzzResult.SKIPPED) and state.status != QuestionStatus.ACTIVE:
        raise InvalidTransition('Question is not active')

    participant = None
    if participant_id is not None:
        participant = db.session.get(Participant, participant_id)
        if participant is None or participant.lobby_id != lobby_id:
            raise NotAMember('Participant does not belong to this lobby')

    if verdict == BuzzResult.CORRECT:
        record_score_event(participant, state.value, ScoreReason.QUESTION_CORRECT, acting_user_id, state)
        state.resolved_by_id = acting_user_id
        _close_question(state, QuestionStatus.RESOLVED)
    elif verdict == BuzzResult.INCORRECT:
        record_score_event(
            participant, -incorrect_penalty(state.value), ScoreReason.QUESTION_INCORRECT, acting_user_id, state
        )
    else:
        _close_question(state, QuestionStatus.DISCARDED)

    if state.status in QuestionStatus.TERMINAL:
        db.session.flush()
        sync_lobby_status(lobby_id)

    current_app.logger.info(
        f"[resolve] lobby={lobby_id} question_state={state.id} verdict={verdict} "
        f"participant={participant_id} status={state.status}"
    )
    return state


def resolve_question(
    lobby_id: int,
    question_state_id: int,
    acting_user_id: int,
    verdict: str,
    participant_id: Optional[int] = None,
) -> QuestionState:
    with lobby_transaction(lobby_id):
        state = apply_verdict(lobby_id, question_state_id, acting_user_id, verdict, participant_id)
    return state

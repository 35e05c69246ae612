"""Fixed gameplay constants and the status vocabularies shared by models and services.

These values are part of the game rules and are intentionally not read from
the environment.
"""

MAX_PLAYERS = 4
QUESTION_TIMER_SECONDS = 30
ROUND_VALUES = (
    (100, 200, 300, 500),
    (200, 400, 600, 1000),
)

# No 0/O or 1/I so codes can be read out loud
LOBBY_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
LOBBY_CODE_LENGTH = 6
LOBBY_CODE_MAX_ATTEMPTS = 10

LOBBY_NAME_MIN_LENGTH = 3
LOBBY_NAME_MAX_LENGTH = 50

SCORE_EVENTS_DEFAULT_LIMIT = 25
SCORE_EVENTS_MAX_LIMIT = 100


class LobbyStatus:
    LOBBY = 'lobby'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'


class Role:
    ADMIN = 'ADMIN'
    PLAYER = 'PLAYER'


class ParticipantState:
    ACTIVE = 'ACTIVE'
    LEFT = 'LEFT'


class QuestionStatus:
    UNPLAYED = 'UNPLAYED'
    ACTIVE = 'ACTIVE'
    RESOLVED = 'RESOLVED'
    DISCARDED = 'DISCARDED'

    TERMINAL = (RESOLVED, DISCARDED)


class BuzzResult:
    PENDING = 'PENDING'
    CORRECT = 'CORRECT'
    INCORRECT = 'INCORRECT'
    SKIPPED = 'SKIPPED'


# Outcomes an admin may hand out for a question or a buzz
VERDICTS = (BuzzResult.CORRECT, BuzzResult.INCORRECT, BuzzResult.SKIPPED)


class ScoreReason:
    QUESTION_CORRECT = 'QUESTION_CORRECT'
    QUESTION_INCORRECT = 'QUESTION_INCORRECT'

"""Question catalog seeding.

The catalog is static: every lobby materializes its board from these rows and
gameplay never mutates them.
"""

from buzzboard import db
from buzzboard.game_config import ROUND_VALUES
from buzzboard.models import Question

CATEGORIES = [
    'LICENSE PLATES',
    'VOICES',
    'VIDEO TITLES',
    'WHO OR WHAT',
    'ABBREVIATIONS',
    'FOOD & DRINK',
]


def question_catalog():
    """Yield one question dict per (category, round, value) cell of the board."""
    for category_index, category in enumerate(CATEGORIES):
        for round_index, values in enumerate(ROUND_VALUES):
            for row_index, value in enumerate(values):
                yield {
                    'category': category,
                    'category_index': category_index,
                    'round_index': round_index,
                    'base_value': value,
                    'prompt': f'{category}: question for {value} points (row {row_index + 1}, round {round_index + 1}).',
                    'answer': f'{category} answer {row_index + 1}',
                    'is_daily_double': False,
                }


def seed_questions() -> int:
    """Insert the catalog unless questions already exist. Returns rows created."""
    if Question.query.first() is not None:
        return 0
    rows = [Question(**data) for data in question_catalog()]
    db.session.add_all(rows)
    db.session.commit()
    return len(rows)

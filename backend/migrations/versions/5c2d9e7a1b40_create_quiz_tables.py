"""create user, lobby, participant, question, question_state, buzzer_attempt, score_event

Revision ID: 5c2d9e7a1b40
Revises:
Create Date: 2026-10-19 10:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'lobby',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='lobby'),
        sa.Column('current_round', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_lobby_code', 'lobby', ['code'], unique=True)

    op.create_table(
        'participant',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('lobby_id', sa.Integer(), sa.ForeignKey('lobby.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('seat_index', sa.Integer(), nullable=True),
        sa.Column('state', sa.String(length=16), nullable=False, server_default='ACTIVE'),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('lobby_id', 'user_id', name='uq_participant_lobby_user'),
        sa.UniqueConstraint('lobby_id', 'seat_index', name='uq_participant_lobby_seat'),
    )
    op.create_index('ix_participant_lobby_id', 'participant', ['lobby_id'])
    op.create_index('ix_participant_user_id', 'participant', ['user_id'])

    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('category_index', sa.Integer(), nullable=False),
        sa.Column('round_index', sa.Integer(), nullable=False),
        sa.Column('base_value', sa.Integer(), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('answer', sa.Text(), nullable=False),
        sa.Column('is_daily_double', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'question_state',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('lobby_id', sa.Integer(), sa.ForeignKey('lobby.id'), nullable=False),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('question.id'), nullable=False),
        sa.Column('round_index', sa.Integer(), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='UNPLAYED'),
        sa.Column('activated_at', sa.DateTime(), nullable=True),
        sa.Column('timer_ends_at', sa.DateTime(), nullable=True),
        sa.Column('selected_by_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('resolved_by_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('lobby_id', 'question_id', name='uq_question_state_lobby_question'),
    )
    op.create_index('ix_question_state_lobby_id', 'question_state', ['lobby_id'])
    op.create_index(
        'uq_question_state_single_active',
        'question_state',
        ['lobby_id'],
        unique=True,
        sqlite_where=sa.text("status = 'ACTIVE'"),
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    op.create_table(
        'buzzer_attempt',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('lobby_id', sa.Integer(), sa.ForeignKey('lobby.id'), nullable=False),
        sa.Column('question_state_id', sa.Integer(), sa.ForeignKey('question_state.id'), nullable=False),
        sa.Column('participant_id', sa.Integer(), sa.ForeignKey('participant.id'), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('result', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('question_state_id', 'participant_id', name='uq_buzzer_attempt_participant'),
        sa.UniqueConstraint('question_state_id', 'order_index', name='uq_buzzer_attempt_order'),
    )
    op.create_index('ix_buzzer_attempt_lobby_id', 'buzzer_attempt', ['lobby_id'])
    op.create_index('ix_buzzer_attempt_question_state_id', 'buzzer_attempt', ['question_state_id'])

    op.create_table(
        'score_event',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('lobby_id', sa.Integer(), sa.ForeignKey('lobby.id'), nullable=False),
        sa.Column('participant_id', sa.Integer(), sa.ForeignKey('participant.id'), nullable=False),
        sa.Column('question_state_id', sa.Integer(), sa.ForeignKey('question_state.id'), nullable=True),
        sa.Column('delta', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_score_event_lobby_id', 'score_event', ['lobby_id'])
    op.create_index('ix_score_event_participant_id', 'score_event', ['participant_id'])


def downgrade():
    op.drop_table('score_event')
    op.drop_table('buzzer_attempt')
    op.drop_index('uq_question_state_single_active', table_name='question_state')
    op.drop_table('question_state')
    op.drop_table('question')
    op.drop_table('participant')
    op.drop_table('lobby')
    op.drop_table('user')

"""create ai_responses, ai_logs and ai_feedback tables

Revision ID: 5d1e8a7c3b20
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5d1e8a7c3b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

response_status = sa.Enum('pending', 'approved', 'rejected', 'published', name='response_status')


def upgrade() -> None:
    op.create_table(
        'ai_responses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('review_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('response_text', sa.Text(), nullable=False),
        sa.Column('status', response_status, nullable=False, server_default='pending'),
        sa.Column('ai_provider', sa.String(50), nullable=False),
        sa.Column('model_used', sa.String(100), nullable=False),
        sa.Column('generation_time', sa.Float(), nullable=True),
        sa.Column('reply_id', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.String(255), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_ai_responses_review_id', 'ai_responses', ['review_id'])
    op.create_index('ix_ai_responses_product_id', 'ai_responses', ['product_id'])
    op.create_index('ix_ai_responses_status', 'ai_responses', ['status'])
    op.create_index('ix_ai_responses_created_at', 'ai_responses', ['created_at'])
    op.create_index('ix_ai_responses_review_created', 'ai_responses', ['review_id', 'created_at'])

    op.create_table(
        'ai_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('action', sa.String(64), nullable=False),
        sa.Column('review_id', sa.Integer(), nullable=True),
        sa.Column('response_id', sa.Integer(), nullable=True),
        sa.Column('actor_id', sa.String(255), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_ai_logs_action', 'ai_logs', ['action'])
    op.create_index('ix_ai_logs_review_id', 'ai_logs', ['review_id'])
    op.create_index('ix_ai_logs_response_id', 'ai_logs', ['response_id'])
    op.create_index('ix_ai_logs_created_at', 'ai_logs', ['created_at'])

    op.create_table(
        'ai_feedback',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('response_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('feedback_type', sa.String(20), nullable=False),
        sa.Column('feedback_text', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('response_id', 'user_id', name='uq_ai_feedback_response_user'),
    )
    op.create_index('ix_ai_feedback_response_id', 'ai_feedback', ['response_id'])


def downgrade() -> None:
    op.drop_index('ix_ai_feedback_response_id', table_name='ai_feedback')
    op.drop_table('ai_feedback')

    op.drop_index('ix_ai_logs_created_at', table_name='ai_logs')
    op.drop_index('ix_ai_logs_response_id', table_name='ai_logs')
    op.drop_index('ix_ai_logs_review_id', table_name='ai_logs')
    op.drop_index('ix_ai_logs_action', table_name='ai_logs')
    op.drop_table('ai_logs')

    op.drop_index('ix_ai_responses_review_created', table_name='ai_responses')
    op.drop_index('ix_ai_responses_created_at', table_name='ai_responses')
    op.drop_index('ix_ai_responses_status', table_name='ai_responses')
    op.drop_index('ix_ai_responses_product_id', table_name='ai_responses')
    op.drop_index('ix_ai_responses_review_id', table_name='ai_responses')
    op.drop_table('ai_responses')
    response_status.drop(op.get_bind(), checkfirst=True)

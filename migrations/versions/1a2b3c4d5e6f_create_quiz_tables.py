"""create quiz tables: card, user, question, choice, correct_answer, user_answer

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a2b3c4d5e6f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'card',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('seed', sa.Text(), nullable=False),
        sa.Column('punch', sa.Text(), nullable=False),
    )
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('card_id', sa.Integer(), sa.ForeignKey('card.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_user_username', 'user', ['username'])
    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('content', sa.Text(), nullable=False),
    )
    op.create_table(
        'choice',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('content', sa.Text(), nullable=False),
    )
    op.create_table(
        'correct_answer',
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('question.id'), primary_key=True),
        sa.Column('choice_id', sa.Integer(), sa.ForeignKey('choice.id'), primary_key=True),
    )
    op.create_table(
        'user_answer',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('question.id'), nullable=False),
        sa.Column('choice_id', sa.Integer(), sa.ForeignKey('choice.id'), nullable=False),
        sa.UniqueConstraint('user_id', 'question_id', name='uq_user_answer_user_question'),
    )
    op.create_index('ix_user_answer_user_id', 'user_answer', ['user_id'])
    op.create_index('ix_user_answer_question_id', 'user_answer', ['question_id'])


def downgrade():
    op.drop_index('ix_user_answer_question_id', table_name='user_answer')
    op.drop_index('ix_user_answer_user_id', table_name='user_answer')
    op.drop_table('user_answer')
    op.drop_table('correct_answer')
    op.drop_table('choice')
    op.drop_table('question')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
    op.drop_table('card')

"""create_assessment_tables

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-16 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('tests',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('test_code', sa.String(6), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('subject', sa.String(50), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tests_id', 'tests', ['id'])
    op.create_index('ix_tests_test_code', 'tests', ['test_code'], unique=True)
    op.create_index('ix_tests_created_by', 'tests', ['created_by'])

    op.create_table('questions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('test_id', sa.String(64), nullable=False),
        sa.Column('stage', sa.String(20), nullable=False, server_default='practice'),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('options_json', sa.Text(), nullable=True),
        sa.Column('correct_answer', sa.Text(), nullable=True),
        sa.Column('passage_title', sa.String(200), nullable=True),
        sa.Column('passage_text', sa.Text(), nullable=True),
        sa.Column('marks', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['test_id'], ['tests.id'], ondelete='CASCADE')
    )
    op.create_index('ix_questions_id', 'questions', ['id'])
    op.create_index('ix_questions_test_id', 'questions', ['test_id'])
    op.create_index('ix_questions_stage', 'questions', ['stage'])

    op.create_table('test_results',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('test_id', sa.String(64), nullable=False),
        sa.Column('student_id', sa.String(64), nullable=False),
        sa.Column('tier', sa.String(20), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('elapsed_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('question_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('answers_json', sa.Text(), nullable=True),
        sa.Column('flags_json', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['test_id'], ['tests.id'], ondelete='CASCADE')
    )
    op.create_index('ix_test_results_id', 'test_results', ['id'])
    op.create_index('ix_test_results_test_id', 'test_results', ['test_id'])
    op.create_index('ix_test_results_student_id', 'test_results', ['student_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_test_results_student_id', table_name='test_results')
    op.drop_index('ix_test_results_test_id', table_name='test_results')
    op.drop_index('ix_test_results_id', table_name='test_results')
    op.drop_table('test_results')

    op.drop_index('ix_questions_stage', table_name='questions')
    op.drop_index('ix_questions_test_id', table_name='questions')
    op.drop_index('ix_questions_id', table_name='questions')
    op.drop_table('questions')

    op.drop_index('ix_tests_created_by', table_name='tests')
    op.drop_index('ix_tests_test_code', table_name='tests')
    op.drop_index('ix_tests_id', table_name='tests')
    op.drop_table('tests')

"""create dart_match table

Revision ID: 5c2d7e9a1b40
Revises: 
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d7e9a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'dart_match' in set(insp.get_table_names()):
        return

    op.create_table(
        'dart_match',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('match_code', sa.String(length=6), nullable=True),
        sa.Column('mode', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('players', sa.Text(), nullable=False),
        sa.Column('current_state', sa.Text(), nullable=False),
        sa.Column('winner_name', sa.String(length=64), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
    )
    with op.batch_alter_table('dart_match') as batch_op:
        batch_op.create_index('ix_dart_match_match_code', ['match_code'], unique=True)


def downgrade():
    with op.batch_alter_table('dart_match') as batch_op:
        batch_op.drop_index('ix_dart_match_match_code')
    op.drop_table('dart_match')

"""create practice_session table

Revision ID: 9a4e1f6c2d83
Revises: 5c2d7e9a1b40
Create Date: 2026-10-18 12:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9a4e1f6c2d83'
down_revision = '5c2d7e9a1b40'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'practice_session' in set(insp.get_table_names()):
        return

    op.create_table(
        'practice_session',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.String(length=32), nullable=False),
        sa.Column('player_name', sa.String(length=64), nullable=True),
        sa.Column('mode', sa.String(length=32), nullable=False),
        sa.Column('current_state', sa.Text(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
    )
    with op.batch_alter_table('practice_session') as batch_op:
        batch_op.create_index('ix_practice_session_session_id', ['session_id'], unique=True)


def downgrade():
    with op.batch_alter_table('practice_session') as batch_op:
        batch_op.drop_index('ix_practice_session_session_id')
    op.drop_table('practice_session')

"""create room_snapshot table

Revision ID: a1c4e9d20b7f
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e9d20b7f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'room_snapshot' in set(insp.get_table_names()):
        return

    op.create_table(
        'room_snapshot',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.Float(), nullable=False),
    )
    op.create_index('ix_room_snapshot_code', 'room_snapshot', ['code'], unique=True)


def downgrade():
    op.drop_index('ix_room_snapshot_code', table_name='room_snapshot')
    op.drop_table('room_snapshot')

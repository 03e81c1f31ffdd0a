"""create saved_state table for the durable game store

Revision ID: 5b7c1d9e2f10
Revises:
Create Date: 2026-01-24 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7c1d9e2f10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'saved_state' in set(insp.get_table_names()):
        return
    op.create_table(
        'saved_state',
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade():
    op.drop_table('saved_state')

"""Add team inventory movement log.

Revision ID: 0002_inventory_movements
Revises: 0001_initial
Create Date: 2026-10-02

team_inventory only keeps the latest source of each (team, product)
total, so every contribution is also appended here.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from retreat_store.migrations.util import get_timestamp_default


# revision identifiers, used by Alembic.
revision: str = "0002_inventory_movements"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'team_inventory_movements',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('obtained_from', sa.String(20), nullable=False),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=get_timestamp_default()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
    )
    op.create_index(
        'ix_team_inventory_movements_team_product',
        'team_inventory_movements',
        ['team_id', 'product_id'],
    )


def downgrade() -> None:
    op.drop_index('ix_team_inventory_movements_team_product', table_name='team_inventory_movements')
    op.drop_table('team_inventory_movements')

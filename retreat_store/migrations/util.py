"""Utility functions for Alembic migrations."""
import sqlalchemy as sa
from alembic import op


def get_timestamp_default():
    """Server default for timestamp columns.

    Returns ``NOW()`` on PostgreSQL and ``CURRENT_TIMESTAMP`` elsewhere.
    """
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        return sa.text('NOW()')
    return sa.text('CURRENT_TIMESTAMP')


def get_false_default():
    """Server default for boolean columns that start out false."""
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        return sa.text('false')
    return sa.text('0')

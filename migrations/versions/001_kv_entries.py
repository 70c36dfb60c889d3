"""Key-value entries table.

Revision ID: 001
Revises:
Create Date: 2024-03-15
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS kv_entries (
            key         TEXT PRIMARY KEY,
            value       BLOB NOT NULL,
            expires_at  INTEGER NOT NULL
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_kv_entries_expires_at ON kv_entries(expires_at)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS kv_entries")

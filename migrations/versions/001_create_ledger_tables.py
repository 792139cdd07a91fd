"""Create ledger tables

Revision ID: 001_create_ledger_tables
Revises:
Create Date: 2026-10-19

Creates users, categories, sources, expenses and incomes. Uses IF NOT
EXISTS since these tables may already exist from a prior create_all() run.
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001_create_ledger_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR PRIMARY KEY,
            firebase_uid VARCHAR NOT NULL UNIQUE,
            email VARCHAR UNIQUE,
            display_name VARCHAR,
            is_active BOOLEAN DEFAULT true,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
            updated_at TIMESTAMP WITH TIME ZONE
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_users_firebase_uid ON users(firebase_uid)")

    # categories (expenses) and sources (incomes) share a shape
    for table in ("categories", "sources"):
        op.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id VARCHAR PRIMARY KEY,
                user_id VARCHAR NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                name VARCHAR(100) NOT NULL,
                icon VARCHAR NOT NULL,
                created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
                updated_at TIMESTAMP WITH TIME ZONE,
                CONSTRAINT uq_{table}_user_name UNIQUE (user_id, name)
            )
        """)
        op.execute(f"CREATE INDEX IF NOT EXISTS ix_{table}_user_id ON {table}(user_id)")

    for table, dimension, dimension_table in (
        ("expenses", "category_id", "categories"),
        ("incomes", "source_id", "sources"),
    ):
        op.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id VARCHAR PRIMARY KEY,
                user_id VARCHAR NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                {dimension} VARCHAR REFERENCES {dimension_table}(id) ON DELETE SET NULL,
                icon VARCHAR NOT NULL,
                name VARCHAR(100) NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                amount FLOAT NOT NULL,
                images JSON NOT NULL DEFAULT '[]',
                date TIMESTAMP WITHOUT TIME ZONE NOT NULL,
                created_at TIMESTAMP WITH TIME ZONE DEFAULT now(),
                updated_at TIMESTAMP WITH TIME ZONE
            )
        """)
        op.execute(f"CREATE INDEX IF NOT EXISTS ix_{table}_user_id ON {table}(user_id)")
        op.execute(f"CREATE INDEX IF NOT EXISTS ix_{table}_{dimension} ON {table}({dimension})")
        op.execute(f"CREATE INDEX IF NOT EXISTS ix_{table}_date ON {table}(date)")
        op.execute(f"CREATE INDEX IF NOT EXISTS ix_{table}_user_date ON {table}(user_id, date)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS incomes")
    op.execute("DROP TABLE IF EXISTS expenses")
    op.execute("DROP TABLE IF EXISTS sources")
    op.execute("DROP TABLE IF EXISTS categories")
    op.execute("DROP TABLE IF EXISTS users")

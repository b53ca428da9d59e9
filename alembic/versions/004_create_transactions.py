"""004: create transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         BIGINT          NOT NULL REFERENCES users (id),
            type            VARCHAR(16)     NOT NULL,
            amount          BIGINT          NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'COMPLETED',
            game_id         BIGINT          REFERENCES games (id),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_type     CHECK (type IN ('DEPOSIT', 'GAME_ENTRY', 'GAME_WIN', 'GAME_REFUND')),
            CONSTRAINT ck_transactions_status   CHECK (status IN ('PENDING', 'COMPLETED', 'FAILED'))
        );
    """)
    op.execute("CREATE INDEX idx_transactions_user ON transactions (user_id, id DESC);")
    op.execute("CREATE INDEX idx_transactions_game ON transactions (game_id);")
    op.execute("COMMENT ON TABLE transactions IS 'Append-only wallet history; amount signed, in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")

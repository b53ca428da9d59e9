"""002: create games table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE games (
            id              BIGSERIAL       PRIMARY KEY,
            status          VARCHAR(16)     NOT NULL DEFAULT 'FORMING',
            game_type       VARCHAR(16)     NOT NULL DEFAULT 'STANDARD',
            entry_fee       BIGINT          NOT NULL,
            prize_pool      BIGINT          NOT NULL DEFAULT 0,
            max_players     INTEGER         NOT NULL DEFAULT 8,
            called_numbers  INTEGER[]       NOT NULL DEFAULT '{}',
            current_number  INTEGER,
            winner_id       BIGINT          REFERENCES users (id),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            started_at      TIMESTAMPTZ,
            completed_at    TIMESTAMPTZ,
            CONSTRAINT ck_games_status          CHECK (status IN ('FORMING', 'ACTIVE', 'SETTLED')),
            CONSTRAINT ck_games_game_type       CHECK (game_type IN ('STANDARD', 'SPEED', 'JACKPOT')),
            CONSTRAINT ck_games_entry_fee_gt_0  CHECK (entry_fee > 0),
            CONSTRAINT ck_games_prize_pool_gte_0 CHECK (prize_pool >= 0),
            CONSTRAINT ck_games_max_players     CHECK (max_players BETWEEN 2 AND 20),
            CONSTRAINT ck_games_current_number  CHECK (current_number BETWEEN 1 AND 75)
        );
    """)
    op.execute("CREATE INDEX idx_games_status ON games (status, created_at DESC);")
    op.execute("COMMENT ON TABLE games IS 'Bingo game sessions; amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS games CASCADE;")

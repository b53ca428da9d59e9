"""003: create game_participants table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE game_participants (
            id              BIGSERIAL       PRIMARY KEY,
            game_id         BIGINT          NOT NULL REFERENCES games (id) ON DELETE CASCADE,
            user_id         BIGINT          NOT NULL REFERENCES users (id),
            card            INTEGER[][]     NOT NULL,
            marked_numbers  INTEGER[]       NOT NULL DEFAULT '{}',
            joined_at       TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_game_participants_game_user UNIQUE (game_id, user_id)
        );
    """)
    op.execute("CREATE INDEX idx_game_participants_user ON game_participants (user_id);")
    op.execute("COMMENT ON TABLE game_participants IS 'One row per player seat: 5x5 card, centre 0 is free';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS game_participants CASCADE;")

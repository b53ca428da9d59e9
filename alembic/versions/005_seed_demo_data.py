"""005: seed demo players and an open game

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Demo players, 100.00 each
    op.execute("""
        INSERT INTO users (username, balance) VALUES
            ('alice', 10000),
            ('bob', 10000),
            ('carol', 10000);
    """)
    op.execute("""
        INSERT INTO transactions (user_id, type, amount, status)
        SELECT id, 'DEPOSIT', balance, 'COMPLETED' FROM users;
    """)

    # One open lobby game
    op.execute("""
        INSERT INTO games (status, game_type, entry_fee, max_players)
        VALUES ('FORMING', 'STANDARD', 250, 8);
    """)


def downgrade() -> None:
    op.execute("DELETE FROM games WHERE status = 'FORMING' AND entry_fee = 250 AND max_players = 8;")
    op.execute("DELETE FROM transactions WHERE type = 'DEPOSIT';")
    op.execute("DELETE FROM users WHERE username IN ('alice', 'bob', 'carol');")

"""Integer arithmetic utilities for cents-based balances, stakes and prize pools.

All amounts use int (cents). No float, no Decimal.
"""


def validate_stake(amount: int) -> None:
    """Validate that an entry stake is a positive number of cents."""
    if amount <= 0:
        raise ValueError(f"Stake must be a positive number of cents, got {amount}")


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 250 -> '2.50', -1200 -> '-12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{cents // 100:,}.{cents % 100:02d}"

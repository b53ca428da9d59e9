"""Card generation and the B/I/N/G/O number scheme.

Column c (0-indexed) holds values from [15c + 1, 15c + 15]; the centre cell
is the free sentinel.
"""

import random

CARD_SIZE = 5
FREE_CELL = 0
MAX_NUMBER = 75
_COLUMN_SPAN = 15
_LETTERS = "BINGO"


def column_range(col: int) -> range:
    """Inclusive value range for a card column, as a ``range``."""
    low = col * _COLUMN_SPAN + 1
    return range(low, low + _COLUMN_SPAN)


def generate_card(rng: random.Random | None = None) -> list[list[int]]:
    """Return a 5x5 row-major card.

    Each column draws 5 distinct values without replacement from its range;
    cell (2, 2) is FREE_CELL.
    """
    rng = rng or random.Random()
    columns = [rng.sample(column_range(col), CARD_SIZE) for col in range(CARD_SIZE)]
    card = [[columns[col][row] for col in range(CARD_SIZE)] for row in range(CARD_SIZE)]
    centre = CARD_SIZE // 2
    card[centre][centre] = FREE_CELL
    return card


def card_numbers(card: list[list[int]]) -> set[int]:
    """All non-free values on the card."""
    return {n for row in card for n in row if n != FREE_CELL}


def number_label(number: int) -> str:
    """Caller label: 7 -> 'B7', 42 -> 'N42'."""
    if not (1 <= number <= MAX_NUMBER):
        raise ValueError(f"Bingo number must be between 1 and {MAX_NUMBER}, got {number}")
    return f"{_LETTERS[(number - 1) // _COLUMN_SPAN]}{number}"


def remaining_numbers(called: list[int]) -> list[int]:
    """Numbers not yet called, ascending."""
    seen = set(called)
    return [n for n in range(1, MAX_NUMBER + 1) if n not in seen]

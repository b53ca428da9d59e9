"""Win evaluation: five rows, five columns, two diagonals."""

from collections.abc import Iterable

from src.bg_game.domain.card import CARD_SIZE, FREE_CELL


def _lines(card: list[list[int]]) -> Iterable[list[int]]:
    yield from card
    for col in range(CARD_SIZE):
        yield [card[row][col] for row in range(CARD_SIZE)]
    yield [card[i][i] for i in range(CARD_SIZE)]
    yield [card[i][CARD_SIZE - 1 - i] for i in range(CARD_SIZE)]


def has_bingo(card: list[list[int]], marked: Iterable[int]) -> bool:
    """True iff at least one of the 12 lines is fully marked.

    The free cell counts as marked regardless of ``marked``.
    """
    covered = set(marked)
    covered.add(FREE_CELL)
    return any(all(n in covered for n in line) for line in _lines(card))

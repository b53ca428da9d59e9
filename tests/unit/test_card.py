"""Unit tests for card generation and number labels."""

import random

import pytest

from src.bg_game.domain.card import (
    CARD_SIZE,
    FREE_CELL,
    card_numbers,
    column_range,
    generate_card,
    number_label,
    remaining_numbers,
)


class TestColumnRange:
    def test_ranges(self) -> None:
        assert column_range(0) == range(1, 16)
        assert column_range(2) == range(31, 46)
        assert column_range(4) == range(61, 76)


class TestGenerateCard:
    @pytest.mark.parametrize("seed", [0, 1, 42, 2024])
    def test_shape_and_ranges(self, seed: int) -> None:
        card = generate_card(random.Random(seed))
        assert len(card) == CARD_SIZE
        assert all(len(row) == CARD_SIZE for row in card)
        assert card[2][2] == FREE_CELL
        for col in range(CARD_SIZE):
            values = [card[row][col] for row in range(CARD_SIZE) if (row, col) != (2, 2)]
            assert len(set(values)) == len(values)
            assert all(v in column_range(col) for v in values)

    def test_24_distinct_numbers(self) -> None:
        assert len(card_numbers(generate_card(random.Random(3)))) == 24

    def test_default_rng(self) -> None:
        assert generate_card()[2][2] == FREE_CELL


class TestNumberLabel:
    @pytest.mark.parametrize(
        ("number", "label"),
        [(1, "B1"), (15, "B15"), (16, "I16"), (42, "N42"), (46, "G46"), (60, "G60"), (75, "O75")],
    )
    def test_letters(self, number: int, label: str) -> None:
        assert number_label(number) == label

    @pytest.mark.parametrize("number", [0, 76, -3])
    def test_out_of_range(self, number: int) -> None:
        with pytest.raises(ValueError):
            number_label(number)


class TestRemainingNumbers:
    def test_complement(self) -> None:
        remaining = remaining_numbers([3, 1, 75])
        assert len(remaining) == 72
        assert remaining[0] == 2
        assert 75 not in remaining

    def test_exhausted(self) -> None:
        assert remaining_numbers(list(range(1, 76))) == []

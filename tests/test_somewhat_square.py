from __future__ import annotations

import pytest

import somewhat_square
from somewhat_square import (
	MAX_NUMBER,
	MIDDLE_ROW,
	SquareSolution,
	collect_rows,
	find_divisors,
	format_grid,
	given_row,
	is_admissible_divisor,
	is_valid_sudoku,
	place_candidate,
	row_digits,
	second_row_numbers,
)

BASE = "134720685"

SHIFTED_GRID = (
	"123456789",
	"456789123",
	"789123456",
	"234567891",
	"567891234",
	"891234567",
	"345678912",
	"678912345",
	"912345678",
)


def test_second_row_numbers_respect_givens() -> None:
	numbers = second_row_numbers()
	assert len(numbers) == 30240
	assert int(BASE) in numbers
	for number in numbers:
		digits = f"{number:09d}"
		assert len(set(digits)) == 9
		assert digits[4] == "2"
		assert digits[8] == "5"
		assert "0" in digits
		assert digits[2] != "0"


def test_row_digits_pads_and_rejects_repeats() -> None:
	assert row_digits(12345678) == "012345678"
	assert row_digits(987654321) == "987654321"
	assert row_digits(112345678) is None
	assert row_digits(1234567890) is None


def test_admissible_divisors() -> None:
	assert is_admissible_divisor(12345679)
	assert is_admissible_divisor(1)
	assert not is_admissible_divisor(12345678)
	assert not is_admissible_divisor(123456789)
	assert not is_admissible_divisor(15)


def test_divisors_are_sorted_largest_first() -> None:
	# 283950617 = 23 * 37 * 333667
	divisors = find_divisors([283950617])
	assert list(divisors) == [12345679, 7674341, 333667, 851, 37, 23, 1]
	assert all(multiples == [283950617] for multiples in divisors.values())


def test_divisors_group_shared_multiples() -> None:
	divisors = find_divisors([21, 63])
	assert divisors[21] == [21, 63]
	assert divisors[3] == [21, 63]
	assert divisors[9] == [63]
	assert 2 not in divisors


def test_candidate_without_given_goes_to_middle_row() -> None:
	assert given_row("205134768") == MIDDLE_ROW
	assert place_candidate(BASE, 205134768) == (MIDDLE_ROW, "205134768")


def test_candidate_matching_a_given_takes_that_row() -> None:
	assert place_candidate(BASE, 13456728) == (0, "013456728")


@pytest.mark.parametrize(
	"candidate",
	[
		315607824,  # matches the givens of two rows
		205134678,  # repeats a base-row digit in its column
		205134769,  # different digit set
		205134778,  # repeated digit
	],
)
def test_rejected_candidates(candidate) -> None:
	assert place_candidate(BASE, candidate) is None


def test_only_one_row_may_start_with_zero() -> None:
	assert place_candidate("034721685", 13456728) is None


def test_custom_givens_change_row_two_numbers() -> None:
	givens = {(1, 4): 2, (1, 8): 5}
	numbers = second_row_numbers(givens=givens)
	assert len(numbers) == 40320
	assert len(second_row_numbers()) == 30240


def test_custom_givens_change_placement() -> None:
	assert given_row("205134768", givens={(0, 0): 2}) == 0
	assert given_row("205134768") == MIDDLE_ROW
	assert place_candidate(BASE, 205134768, givens={(0, 0): 2}) == (0, "205134768")


# Divisor 10**8 steps from BASE give eight upward candidates and one downward (34720685).
STEP = 100_000_000


def fake_placement(monkeypatch, rows: dict[int, int]) -> None:
	def place(base, candidate, *, givens=None):
		if candidate not in rows:
			return None
		return rows[candidate], f"{candidate:09d}"

	monkeypatch.setattr(somewhat_square, "place_candidate", place)


def test_collect_rows_groups_candidates_by_row(monkeypatch) -> None:
	fake_placement(
		monkeypatch,
		{
			234720685: 0,
			334720685: 2,
			434720685: 3,
			534720685: 4,
			634720685: 5,
			734720685: 6,
			834720685: 7,
			934720685: 4,
			34720685: 8,
		},
	)
	rows = collect_rows(STEP, int(BASE))

	assert rows is not None
	assert rows[0] == ["234720685"]
	assert rows[1] == [BASE]
	assert rows[2] == ["334720685"]
	assert rows[3] == ["434720685"]
	assert rows[4] == ["534720685", "934720685"]
	assert rows[5] == ["634720685"]
	assert rows[6] == ["734720685"]
	assert rows[7] == ["834720685"]
	assert rows[8] == ["034720685"]


def test_collect_rows_rejects_an_empty_row(monkeypatch) -> None:
	fake_placement(
		monkeypatch,
		{
			234720685: 0,
			334720685: 2,
			434720685: 3,
			534720685: 0,
			634720685: 5,
			734720685: 6,
			834720685: 7,
			934720685: 0,
			34720685: 8,
		},
	)
	assert collect_rows(STEP, int(BASE)) is None


def test_collect_rows_needs_a_row_starting_with_zero(monkeypatch) -> None:
	fake_placement(
		monkeypatch,
		{
			234720685: 0,
			334720685: 2,
			434720685: 3,
			534720685: 4,
			634720685: 5,
			734720685: 6,
			834720685: 7,
			934720685: 8,
		},
	)
	assert collect_rows(STEP, int(BASE)) is None


def test_collect_rows_without_candidates() -> None:
	assert collect_rows(MAX_NUMBER, int(BASE)) is None



def test_sudoku_validation() -> None:
	assert is_valid_sudoku(SHIFTED_GRID)
	broken = ("213456789",) + SHIFTED_GRID[1:]
	assert not is_valid_sudoku(broken)
	same_box = ("123456789", "234567891") + SHIFTED_GRID[2:]
	assert not is_valid_sudoku(same_box)


def test_format_grid_draws_boxes() -> None:
	lines = format_grid(SHIFTED_GRID).splitlines()
	assert len(lines) == 13
	assert lines[0] == "-" * 25
	assert lines[1] == "| 1 2 3 | 4 5 6 | 7 8 9 |"


def test_cli_prints_middle_row(monkeypatch, capsys) -> None:
	solution = SquareSolution(divisor=1, grid=SHIFTED_GRID)
	monkeypatch.setattr(somewhat_square, "solve", lambda: solution)
	assert somewhat_square.cli([]) == 1
	assert capsys.readouterr().out.strip() == "Answer to the puzzle: 567891234"


def test_cli_reports_missing_answer(monkeypatch, capsys) -> None:
	monkeypatch.setattr(somewhat_square, "solve", lambda: None)
	assert somewhat_square.cli([]) == 0
	assert capsys.readouterr().out.strip() == "Answer not found :("


@pytest.mark.slow
def test_full_search_finds_known_answer() -> None:
	solution = somewhat_square.solve()
	assert solution is not None
	assert solution.middle_row == 283950617
	assert is_valid_sudoku(solution.grid)
	assert all(int(row) % solution.divisor == 0 for row in solution.grid)

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from functools import lru_cache
from itertools import chain, permutations, product
from math import isqrt
from typing import Iterable, Mapping, Optional, Sequence


Cell = tuple[int, int]  # (row, col), both 0-based from the top-left
Grid = tuple[str, ...]  # one 9-character digit string per row

logger = logging.getLogger("somewhat_square")

GRID_SIZE = 9
BOX_SIZE = 3

GIVENS: dict[Cell, int] = {
	(0, 7): 2,
	(1, 4): 2,
	(1, 8): 5,
	(2, 1): 2,
	(3, 2): 0,
	(5, 3): 2,
	(6, 4): 0,
	(7, 5): 2,
	(8, 6): 5,
}
# Every other row is searched as a multiple-step away from this one.
BASE_ROW = 1
MIDDLE_ROW = 4

MIN_NUMBER = 12_345_678
MAX_NUMBER = 987_654_321
# One row always starts with 0, so a common divisor has at most 8 digits.
MAX_DIVISOR = 99_999_999
# The last column mixes odd and even digits and is not all 0/5, so the divisor is coprime to 10.
DIVISOR_LAST_DIGITS = frozenset({1, 3, 7, 9})


def second_row_numbers(*, givens: Mapping[Cell, int] = GIVENS) -> list[int]:
	"""All numbers the base row can hold.

	- Digits are distinct and include every given digit.
	- Givens of the base row are in place.
	- No column repeats a digit given elsewhere in that column.
	"""
	fixed = {col: digit for (row, col), digit in givens.items() if row == BASE_ROW}
	required = set(givens.values())
	free_cols = [col for col in range(GRID_SIZE) if col not in fixed]
	spare = [d for d in range(10) if d not in fixed.values()]
	forbidden = {
		col: {digit for (row, c), digit in givens.items() if c == col and row != BASE_ROW}
		for col in free_cols
	}

	numbers: list[int] = []
	for digits in permutations(spare, len(free_cols)):
		placed = dict(zip(free_cols, digits))
		if not required.issubset(set(digits) | set(fixed.values())):
			continue
		if any(placed[col] in forbidden[col] for col in free_cols):
			continue
		placed.update(fixed)
		numbers.append(int("".join(str(placed[col]) for col in range(GRID_SIZE))))
	return sorted(numbers)


def is_admissible_divisor(divisor: int) -> bool:
	return 0 < divisor <= MAX_DIVISOR and divisor % 10 in DIVISOR_LAST_DIGITS


def find_divisors(numbers: Iterable[int]) -> dict[int, list[int]]:
	"""Map each admissible divisor to the numbers it divides, largest divisor first."""
	divisors: dict[int, set[int]] = {}
	for number in numbers:
		step = 2 if number % 2 else 1
		for small in [s for s in range(1, isqrt(number) + 1, step) if number % s == 0]:
			for divisor in (small, number // small):
				if is_admissible_divisor(divisor):
					divisors.setdefault(divisor, set()).add(number)
	return {d: sorted(divisors[d]) for d in sorted(divisors, reverse=True)}


def row_digits(number: int) -> Optional[str]:
	"""Zero-padded digits of a row number, or None if it cannot fill a row."""
	digits = f"{number:0{GRID_SIZE}d}"
	if len(digits) != GRID_SIZE or len(set(digits)) != GRID_SIZE:
		return None
	return digits


@lru_cache(maxsize=None)
def _row_givens(givens: frozenset[tuple[Cell, int]]) -> tuple[tuple[tuple[int, str], ...], ...]:
	rows: list[list[tuple[int, str]]] = [[] for _ in range(GRID_SIZE)]
	for (row, col), digit in sorted(givens):
		rows[row].append((col, str(digit)))
	return tuple(tuple(cells) for cells in rows)


def given_row(digits: str, *, givens: Mapping[Cell, int] = GIVENS) -> Optional[int]:
	"""Row (other than the base row) that `digits` can occupy, judged by the givens alone.

	A row qualifies when `digits` matches all of its givens and no given of
	another row sits in the same column with the same digit. Returns None when
	zero or several rows qualify.
	"""
	row_givens = _row_givens(frozenset(givens.items()))
	placements = []
	for row in range(GRID_SIZE):
		if row == BASE_ROW:
			continue
		if not all(digits[col] == digit for col, digit in row_givens[row]):
			continue
		clash = any(
			digits[col] == digit
			for other in range(GRID_SIZE)
			if other != row
			for col, digit in row_givens[other]
		)
		if not clash:
			placements.append(row)
	if len(placements) != 1:
		return None
	return placements[0]


def place_candidate(
	base: str,
	candidate: int,
	*,
	givens: Mapping[Cell, int] = GIVENS,
) -> Optional[tuple[int, str]]:
	"""Return (row, digits) for a candidate that can sit in the grid beside `base`."""
	digits = row_digits(candidate)
	if digits is None:
		return None
	# Only one row may start with 0.
	if base[0] == "0" and digits[0] == "0":
		return None
	if set(digits) != set(base):
		return None
	if any(a == b for a, b in zip(digits, base)):
		return None
	row = given_row(digits, givens=givens)
	if row is None:
		return None
	return row, digits


def collect_rows(
	divisor: int,
	multiple: int,
	*,
	givens: Mapping[Cell, int] = GIVENS,
) -> Optional[list[list[str]]]:
	"""Group every placeable multiple-step of `multiple` by the row it can occupy.

	Returns None when the candidates cannot fill a grid: a row is empty, or there
	are too few 9-digit rows and 8-digit rows between them.
	"""
	base = row_digits(multiple)
	if base is None:
		return None

	rows: list[list[str]] = [[] for _ in range(GRID_SIZE)]
	rows[BASE_ROW].append(base)
	full = short = 0

	upward = range(multiple + divisor, MAX_NUMBER + 1, divisor)
	downward = range(multiple - divisor, MIN_NUMBER - 1, -divisor)
	for candidate in chain(upward, downward):
		placed = place_candidate(base, candidate, givens=givens)
		if placed is None:
			continue
		row, digits = placed
		rows[row].append(digits)
		if digits[0] == "0":
			short += 1
		else:
			full += 1

	if base[0] == "0":
		if full < GRID_SIZE - 1:
			return None
	elif full < GRID_SIZE - 2 or short < 1:
		return None
	if any(not candidates for candidates in rows):
		return None
	return rows


def is_valid_sudoku(grid: Sequence[str]) -> bool:
	seen: set[tuple[str, int, str]] = set()
	for row in range(GRID_SIZE):
		for col in range(GRID_SIZE):
			digit = grid[row][col]
			box = row // BOX_SIZE * BOX_SIZE + col // BOX_SIZE
			for key in (("row", row, digit), ("col", col, digit), ("box", box, digit)):
				if key in seen:
					return False
				seen.add(key)
	return True


@dataclass(frozen=True)
class SquareSolution:
	divisor: int
	grid: Grid

	@property
	def middle_row(self) -> int:
		return int(self.grid[MIDDLE_ROW])


def solve(*, givens: Mapping[Cell, int] = GIVENS) -> Optional[SquareSolution]:
	"""Find the grid whose rows share the largest admissible divisor.

	Divisors are tried largest first, so the first valid grid is the answer.
	"""
	numbers = second_row_numbers(givens=givens)
	logger.info("%d numbers fit row %d", len(numbers), BASE_ROW + 1)
	divisors = find_divisors(numbers)
	logger.info("%d admissible divisors", len(divisors))

	for divisor, multiples in divisors.items():
		for multiple in multiples:
			rows = collect_rows(divisor, multiple, givens=givens)
			if rows is None:
				continue
			logger.debug("divisor %d, row %d: %s candidates", divisor, multiple, [len(r) for r in rows])
			for grid in product(*rows):
				if is_valid_sudoku(grid):
					logger.info("Solved with divisor %d", divisor)
					return SquareSolution(divisor=divisor, grid=tuple(grid))
	return None


def format_grid(grid: Sequence[str]) -> str:
	border = "-" * (2 * GRID_SIZE + 2 * (GRID_SIZE // BOX_SIZE) + 1)
	lines = [border]
	for row, digits in enumerate(grid):
		parts = ["|"]
		for col, digit in enumerate(digits):
			parts.append(digit)
			if (col + 1) % BOX_SIZE == 0:
				parts.append("|")
		lines.append(" ".join(parts))
		if (row + 1) % BOX_SIZE == 0:
			lines.append(border)
	return "\n".join(lines)


def main(*, show_grid: bool) -> int:
	solution = solve()
	if solution is None:
		print("Answer not found :(")
		return 0

	print(f"Answer to the puzzle: {solution.middle_row}")
	if show_grid:
		print(f"Common divisor: {solution.divisor}")
		print(format_grid(solution.grid))
	return 1


def cli(argv: Optional[Sequence[str]] = None) -> int:
	parser = argparse.ArgumentParser(
		description="Fill the 9x9 grid whose row numbers share the largest common divisor",
	)
	parser.add_argument("--show-grid", action="store_true", help="Print the completed grid")
	parser.add_argument("-v", "--verbose", action="store_true", help="Log search progress")
	args = parser.parse_args(argv)
	logging.basicConfig(
		level=logging.INFO if args.verbose else logging.WARNING,
		format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
	)
	return main(show_grid=args.show_grid)


if __name__ == "__main__":
	raise SystemExit(cli())

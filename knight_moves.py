from __future__ import annotations

import argparse
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from itertools import permutations
from typing import Iterable, Iterator, Optional, Sequence


Point = tuple[int, int]  # (row, col); row 0 is the top rank, col 0 is file "a"
RegionId = str
BoardKey = tuple[int, int, int]
Route = tuple[Point, Point]

logger = logging.getLogger("knight_moves")

BOARD_LAYOUT: tuple[str, ...] = (
	"abbccc",
	"abbccc",
	"aabbcc",
	"aabbcc",
	"aaabbc",
	"aaabbc",
)
REGION_IDS: tuple[RegionId, ...] = ("a", "b", "c")
BOARD_SIZE = len(BOARD_LAYOUT)

TARGET_SCORE = 2024
# Lowest values worth trying; every ordering of them is a separate board.
TARGET_VALUES: tuple[int, int, int] = (1, 2, 3)

ROUTE_A1_F6: Route = ((5, 0), (0, 5))
ROUTE_A6_F1: Route = ((0, 0), (5, 5))
ROUTES: tuple[Route, Route] = (ROUTE_A1_F6, ROUTE_A6_F1)

# Opposite corners share a colour, so only even move counts can connect them.
TRIP_LENGTH_MIN = 8
TRIP_LENGTH_MAX = BOARD_SIZE * BOARD_SIZE - 1

KNIGHT_MOVES: tuple[Point, ...] = (
	(2, 1),
	(1, 2),
	(-1, 2),
	(-2, 1),
	(-2, -1),
	(-1, -2),
	(1, -2),
	(2, -1),
)


def build_region_map(layout: Sequence[str] = BOARD_LAYOUT) -> dict[Point, RegionId]:
	"""Map every cell of a square layout to its region id.

	Raises ValueError when the layout is not square, a cell names an unknown
	region, or one of the regions owns no cell at all.
	"""
	size = len(layout)
	if size == 0:
		raise ValueError("Board layout is empty")

	regions: dict[Point, RegionId] = {}
	for row, line in enumerate(layout):
		if len(line) != size:
			raise ValueError(f"Row {row} has {len(line)} cells, expected {size}")
		for col, region in enumerate(line):
			if region not in REGION_IDS:
				raise ValueError(
					f"Cell {(row, col)} has unknown region {region!r}. Allowed: {list(REGION_IDS)}"
				)
			regions[(row, col)] = region

	missing = set(REGION_IDS) - set(regions.values())
	if missing:
		raise ValueError(f"Regions without any cell: {sorted(missing)}")
	return regions


def cell_label(point: Point, size: int = BOARD_SIZE) -> str:
	"""Chess-style label, e.g. (5, 0) -> 'a1' on a 6x6 board."""
	row, col = point
	return f"{chr(ord('a') + col)}{size - row}"


def format_trip(trip: Sequence[Point], size: int = BOARD_SIZE) -> str:
	return ",".join(cell_label(p, size) for p in trip)


def is_knight_move(a: Point, b: Point) -> bool:
	return {abs(a[0] - b[0]), abs(a[1] - b[1])} == {1, 2}


def build_knight_adjacency(size: int = BOARD_SIZE) -> dict[Point, tuple[Point, ...]]:
	"""Knight neighbours of every cell, listed in KNIGHT_MOVES order."""
	adj: dict[Point, tuple[Point, ...]] = {}
	for row in range(size):
		for col in range(size):
			adj[(row, col)] = tuple(
				(row + dr, col + dc)
				for dr, dc in KNIGHT_MOVES
				if 0 <= row + dr < size and 0 <= col + dc < size
			)
	return adj


def knight_distances(target: Point, adjacency: dict[Point, tuple[Point, ...]]) -> dict[Point, int]:
	"""Fewest knight moves from each reachable cell to `target` on an empty board."""
	dist = {target: 0}
	queue = deque([target])
	while queue:
		cur = queue.popleft()
		for nxt in adjacency[cur]:
			if nxt not in dist:
				dist[nxt] = dist[cur] + 1
				queue.append(nxt)
	return dist


def trip_lengths(
	start: Point,
	finish: Point,
	*,
	min_length: int = TRIP_LENGTH_MIN,
	max_length: int = TRIP_LENGTH_MAX,
) -> range:
	"""Move counts worth searching between `start` and `finish`.

	A knight changes square colour on every move, so the parity of the move count
	is fixed by the colours of the two end cells.
	"""
	parity = (sum(start) + sum(finish)) % 2
	first = min_length if min_length % 2 == parity else min_length + 1
	return range(first, max_length + 1, 2)


@dataclass(frozen=True)
class CandidateBoard:
	"""One assignment of positive values to the regions a, b and c."""

	a: int
	b: int
	c: int
	layout: tuple[str, ...] = field(default=BOARD_LAYOUT, repr=False, compare=False)
	grid: tuple[tuple[int, ...], ...] = field(init=False, repr=False, compare=False)

	def __post_init__(self) -> None:
		values = {"a": self.a, "b": self.b, "c": self.c}
		for region, value in values.items():
			if value <= 0:
				raise ValueError(f"Region {region!r} needs a positive value, got {value}")
		object.__setattr__(self, "layout", tuple(self.layout))
		regions = build_region_map(self.layout)
		size = len(self.layout)
		grid = tuple(
			tuple(values[regions[(row, col)]] for col in range(size))
			for row in range(size)
		)
		object.__setattr__(self, "grid", grid)

	@property
	def key(self) -> BoardKey:
		return (self.a, self.b, self.c)

	def value_at(self, point: Point) -> int:
		return self.grid[point[0]][point[1]]

	def step(self, score: int, previous: Point, cell: Point) -> int:
		"""Apply one move: same value as the previous cell adds, otherwise multiplies."""
		value = self.value_at(cell)
		if value == self.value_at(previous):
			return score + value
		return score * value

	def running_scores(self, trip: Sequence[Point]) -> list[int]:
		if not trip:
			return []
		scores = [self.value_at(trip[0])]
		for previous, cell in zip(trip, trip[1:]):
			scores.append(self.step(scores[-1], previous, cell))
		return scores

	def is_valid_trip(self, trip: Sequence[Point], target: int = TARGET_SCORE) -> bool:
		"""True if the trip scores exactly `target`.

		Values are positive, so the score never decreases; scoring stops at the
		first cell that pushes it past the target.
		"""
		if not trip:
			return False
		score = self.value_at(trip[0])
		if score > target:
			return False
		for previous, cell in zip(trip, trip[1:]):
			score = self.step(score, previous, cell)
			if score > target:
				return False
		return score == target


def generate_candidate_boards(
	values: Iterable[int] = TARGET_VALUES,
	*,
	layout: tuple[str, ...] = BOARD_LAYOUT,
) -> Iterator[CandidateBoard]:
	"""Yield one board per distinct ordering of the three values, lexicographically."""
	values = tuple(values)
	if len(values) != 3:
		raise ValueError(f"Expected three region values, got {len(values)}")
	for a, b, c in sorted(set(permutations(values))):
		yield CandidateBoard(a, b, c, layout=layout)


@dataclass(frozen=True)
class TripPair:
	"""A board together with one scoring trip from each route."""

	board: CandidateBoard
	first: tuple[Point, ...]
	second: tuple[Point, ...]
	target: int = TARGET_SCORE

	def ordered(self, first_start: Point = ROUTE_A1_F6[0]) -> tuple[tuple[Point, ...], tuple[Point, ...]]:
		if self.first[0] != first_start and self.second[0] == first_start:
			return self.second, self.first
		return self.first, self.second

	def format_answer(self, *, first_start: Point = ROUTE_A1_F6[0]) -> str:
		size = len(self.board.layout)
		trip1, trip2 = self.ordered(first_start)
		return ",".join(
			[
				str(self.board.a),
				str(self.board.b),
				str(self.board.c),
				format_trip(trip1, size),
				format_trip(trip2, size),
			]
		)


class TripRegistry:
	"""First trip found for each board key, shared by the searchers."""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._trips: dict[BoardKey, tuple[Point, ...]] = {}

	def claim(self, key: BoardKey, trip: Sequence[Point]) -> Optional[tuple[Point, ...]]:
		"""Record `trip` for `key`, or return the trip already recorded for it.

		Check and insert happen under one lock, so for any key exactly one caller
		gets None back.
		"""
		with self._lock:
			existing = self._trips.get(key)
			if existing is not None:
				return existing
			self._trips[key] = tuple(trip)
			return None

	def get(self, key: BoardKey) -> Optional[tuple[Point, ...]]:
		with self._lock:
			return self._trips.get(key)

	def __contains__(self, key: object) -> bool:
		with self._lock:
			return key in self._trips

	def __len__(self) -> int:
		with self._lock:
			return len(self._trips)


class TourSearcher:
	"""Iterative-deepening search for knight trips from `start` to `finish`.

	- Every trip length is searched exhaustively before the next one.
	- Each candidate keeps a running score down the search; a branch is dropped
	  once no candidate is still at or below the target.
	- Boards this searcher has solved leave its private pool for good.
	- A cross-match with the other route sets `cancel`, which stops both searchers.
	"""

	def __init__(
		self,
		*,
		start: Point,
		finish: Point,
		candidates: Iterable[CandidateBoard],
		registry: TripRegistry,
		cancel: threading.Event,
		target: int = TARGET_SCORE,
		min_length: int = TRIP_LENGTH_MIN,
		max_length: int = TRIP_LENGTH_MAX,
		size: int = BOARD_SIZE,
	) -> None:
		for point in (start, finish):
			if not (0 <= point[0] < size and 0 <= point[1] < size):
				raise ValueError(f"Cell {point} is outside the {size}x{size} board")
		self.start = start
		self.finish = finish
		self.target = target
		self.min_length = min_length
		self.max_length = min(max_length, size * size - 1)
		self.size = size
		self.name = f"{cell_label(start, size)}->{cell_label(finish, size)}"
		self.match: Optional[TripPair] = None
		self.solved: dict[BoardKey, tuple[Point, ...]] = {}

		self._registry = registry
		self._cancel = cancel
		self._pool: dict[BoardKey, CandidateBoard] = {}
		for board in candidates:
			self._pool.setdefault(board.key, board)
		self._adjacency = build_knight_adjacency(size)
		self._distance = knight_distances(finish, self._adjacency)
		self._visited: list[list[bool]] = []
		self._trip: list[Point] = []

	@property
	def pool(self) -> list[CandidateBoard]:
		return list(self._pool.values())

	def run(self) -> Optional[TripPair]:
		lengths = trip_lengths(self.start, self.finish, min_length=self.min_length, max_length=self.max_length)
		for length in lengths:
			if self._cancel.is_set() or not self._pool:
				break
			logger.info("%s: %d moves, %d candidate(s) left", self.name, length, len(self._pool))

			self._visited = [[False] * self.size for _ in range(self.size)]
			self._visited[self.start[0]][self.start[1]] = True
			self._trip = [self.start]
			scores = {
				key: board.value_at(self.start)
				for key, board in self._pool.items()
				if board.value_at(self.start) <= self.target
			}
			if scores:
				self._dfs(self.start, length, scores)
		return self.match

	def _dfs(self, cell: Point, moves_left: int, scores: dict[BoardKey, int]) -> None:
		if self._cancel.is_set():
			return
		if moves_left == 0:
			if cell == self.finish:
				self._try_candidates(scores)
			return

		unreachable = self.size * self.size
		for nxt in self._adjacency[cell]:
			row, col = nxt
			if self._visited[row][col]:
				continue
			# The finish cell can only be the last cell of the trip.
			if nxt == self.finish and moves_left > 1:
				continue
			if self._distance.get(nxt, unreachable) > moves_left - 1:
				continue

			next_scores: dict[BoardKey, int] = {}
			for key, score in scores.items():
				board = self._pool.get(key)
				if board is None:
					continue
				new_score = board.step(score, cell, nxt)
				if new_score <= self.target:
					next_scores[key] = new_score
			if not next_scores:
				continue

			self._visited[row][col] = True
			self._trip.append(nxt)
			self._dfs(nxt, moves_left - 1, next_scores)
			self._trip.pop()
			self._visited[row][col] = False

			if self._cancel.is_set():
				return

	def _try_candidates(self, scores: dict[BoardKey, int]) -> None:
		trip = tuple(self._trip)
		for key, score in scores.items():
			board = self._pool.get(key)
			if board is None or score != self.target:
				continue
			if not board.is_valid_trip(trip, self.target):
				continue

			del self._pool[key]
			self.solved[key] = trip
			logger.debug("%s: board %s solved by %s", self.name, key, format_trip(trip, self.size))

			other = self._registry.claim(key, trip)
			if other is not None:
				self.match = TripPair(board=board, first=other, second=trip, target=self.target)
				logger.info("%s: cross-match on board %s", self.name, key)
				self._cancel.set()
				return


def find_trip_pair(
	*,
	candidates: Optional[Iterable[CandidateBoard]] = None,
	routes: Sequence[Route] = ROUTES,
	target: int = TARGET_SCORE,
	min_length: int = TRIP_LENGTH_MIN,
	max_length: int = TRIP_LENGTH_MAX,
) -> Optional[TripPair]:
	"""Run one searcher thread per route and return the first cross-match.

	Returns None when both searchers exhaust their lengths without two trips
	scoring the target on the same board.
	"""
	if len(routes) != 2:
		raise ValueError(f"Expected two routes, got {len(routes)}")
	boards = list(generate_candidate_boards() if candidates is None else candidates)
	if not boards:
		return None
	layouts = {board.layout for board in boards}
	if len(layouts) != 1:
		raise ValueError("All candidate boards must share one layout")
	size = len(boards[0].layout)

	registry = TripRegistry()
	cancel = threading.Event()
	searchers = [
		TourSearcher(
			start=start,
			finish=finish,
			candidates=boards,
			registry=registry,
			cancel=cancel,
			target=target,
			min_length=min_length,
			max_length=max_length,
			size=size,
		)
		for start, finish in routes
	]

	errors: list[Exception] = []

	def work(searcher: TourSearcher) -> None:
		try:
			searcher.run()
		except Exception as exc:
			errors.append(exc)
			cancel.set()

	threads = [
		threading.Thread(target=work, args=(searcher,), name=f"trips {searcher.name}")
		for searcher in searchers
	]
	for thread in threads:
		thread.start()
	for thread in threads:
		thread.join()

	if errors:
		raise errors[0]
	for searcher in searchers:
		if searcher.match is not None:
			return searcher.match
	return None


def plot_trip_pair(pair: TripPair) -> None:
	try:
		import matplotlib.pyplot as plt
	except ModuleNotFoundError as exc:
		raise SystemExit(
			"matplotlib is required to plot. Install with: pip install matplotlib"
		) from exc

	board = pair.board
	size = len(board.layout)
	regions = build_region_map(board.layout)

	fig, ax = plt.subplots(figsize=(6, 6))

	# Shade cells by region; x is the file, y the rank.
	cmap = plt.get_cmap("tab20")
	region_color = {rid: cmap(2 * i + 1) for i, rid in enumerate(REGION_IDS)}
	for (row, col), region in regions.items():
		x, y = col, size - 1 - row
		ax.add_patch(
			plt.Rectangle(
				(x - 0.5, y - 0.5),
				1,
				1,
				facecolor=region_color[region],
				edgecolor="0.85",
				zorder=0,
			)
		)
		ax.text(x, y, str(board.value_at((row, col))), ha="center", va="center", color="0.45", fontsize=9, zorder=1)

	for trip, color in zip(pair.ordered(), ("tab:red", "tab:blue")):
		xs = [col for _, col in trip]
		ys = [size - 1 - row for row, _ in trip]
		label = f"{cell_label(trip[0], size)} -> {cell_label(trip[-1], size)} ({len(trip) - 1} moves)"
		ax.plot(xs, ys, color=color, linewidth=2.5, marker="o", markersize=5, zorder=2, label=label)

	ax.set_xticks(range(size))
	ax.set_xticklabels([chr(ord("a") + i) for i in range(size)])
	ax.set_yticks(range(size))
	ax.set_yticklabels([str(i + 1) for i in range(size)])
	ax.set_xlim(-0.5, size - 0.5)
	ax.set_ylim(-0.5, size - 0.5)
	ax.set_aspect("equal", adjustable="box")
	ax.legend(loc="upper center", bbox_to_anchor=(0.5, -0.06), ncol=2, fontsize=8)
	ax.set_title(f"A={board.a}, B={board.b}, C={board.c} -> {pair.target}")
	plt.show()


def main(*, plot: bool) -> int:
	build_region_map(BOARD_LAYOUT)
	candidates = list(generate_candidate_boards(TARGET_VALUES))
	logger.info("Target: %d", TARGET_SCORE)
	logger.info("Candidates: %s", [board.key for board in candidates])

	pair = find_trip_pair(candidates=candidates)
	if pair is None:
		print("Trips not found :(")
		return 0

	print("I found it!")
	print(pair.format_answer())
	if plot:
		plot_trip_pair(pair)
	# Exit status 1 marks a found answer.
	return 1


def cli(argv: Optional[Sequence[str]] = None) -> int:
	parser = argparse.ArgumentParser(
		description="Search two knight trips (a1->f6, a6->f1) scoring the target on the same A/B/C board",
	)
	parser.add_argument("--plot", action="store_true", help="Show the board and both trips with matplotlib")
	parser.add_argument("-v", "--verbose", action="store_true", help="Log search progress")
	args = parser.parse_args(argv)
	logging.basicConfig(
		level=logging.INFO if args.verbose else logging.WARNING,
		format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
	)
	return main(plot=args.plot)


if __name__ == "__main__":
	raise SystemExit(cli())

"""Fast geometry operations for the 8x8 Battleplan board.

Squares travel through the engine as two-character keys ("A1".."H8").
Neighbour tables are pre-computed once so that heuristic loops never parse
strings in hot paths.

Neighbour order is part of the engine's determinism: candidate lists built
from these tables are iterated in order, and ties resolve to the first
entry. Orthogonal neighbours are (f+1, r), (f-1, r), (f, r+1), (f, r-1);
diagonal neighbours are (f-1, r-1), (f-1, r+1), (f+1, r-1), (f+1, r+1).

Usage:
    from battleplan_ai.ai.fast_geometry import get_fast_geometry

    geo = get_fast_geometry()
    geo.orthogonal("D4")   # ('E4', 'C4', 'D5', 'D3')
    geo.adjacent("A1")     # 8-neighbourhood clipped to the board
"""

from __future__ import annotations

from functools import lru_cache
from typing import NamedTuple

from ..errors import InvalidSquareError
from ..models import coerce_square_code

FILES = "ABCDEFGH"
BOARD_SIZE = 8

ORTHOGONAL_DIRECTIONS: tuple[tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
DIAGONAL_DIRECTIONS: tuple[tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))
# File-major sweep used when picking attack targets.
SCAN_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)


class Square(NamedTuple):
    """Board coordinate; file and rank are both 1-based."""

    file: int
    rank: int

    @classmethod
    def parse(cls, code: object) -> Square | None:
        """Lenient parse: returns None for anything that is not a square."""
        key = coerce_square_code(code)
        if key is None:
            return None
        return cls(FILES.index(key[0]) + 1, int(key[1]))

    @classmethod
    def from_code(cls, code: object) -> Square:
        """Strict parse for callers that assert validity."""
        square = cls.parse(code)
        if square is None:
            raise InvalidSquareError(code)
        return square

    @staticmethod
    def in_bounds(file: int, rank: int) -> bool:
        return 1 <= file <= BOARD_SIZE and 1 <= rank <= BOARD_SIZE

    @property
    def code(self) -> str:
        return f"{FILES[self.file - 1]}{self.rank}"

    def flipped(self) -> Square:
        return Square(self.file, BOARD_SIZE + 1 - self.rank)

    def offset(self, df: int, dr: int) -> str | None:
        """Key of the square at (file+df, rank+dr), or None off-board."""
        return make_key(self.file + df, self.rank + dr)


def make_key(file: int, rank: int) -> str | None:
    if not Square.in_bounds(file, rank):
        return None
    return f"{FILES[file - 1]}{rank}"


@lru_cache(maxsize=128)
def key_to_coords(key: str) -> tuple[int, int] | None:
    square = Square.parse(key)
    if square is None:
        return None
    return square.file, square.rank


def flip_key(key: str | None) -> str | None:
    """Mirror a square across the board's horizontal midline."""
    square = Square.parse(key)
    if square is None:
        return key
    return square.flipped().code


def full_rank(rank: int) -> tuple[str, ...]:
    return tuple(f"{f}{rank}" for f in FILES)


def manhattan(a: str, b: str) -> int:
    ca, cb = key_to_coords(a), key_to_coords(b)
    if ca is None or cb is None:
        return 99
    return abs(ca[0] - cb[0]) + abs(ca[1] - cb[1])


def is_adjacent(a: str | None, b: str | None) -> bool:
    """8-neighbourhood adjacency (a square is not adjacent to itself)."""
    if a is None or b is None:
        return False
    ca, cb = key_to_coords(a), key_to_coords(b)
    if ca is None or cb is None:
        return False
    dx, dy = abs(ca[0] - cb[0]), abs(ca[1] - cb[1])
    return dx <= 1 and dy <= 1 and (dx, dy) != (0, 0)


def is_orthogonal_step(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    ca, cb = key_to_coords(a), key_to_coords(b)
    if ca is None or cb is None:
        return False
    return abs(ca[0] - cb[0]) + abs(ca[1] - cb[1]) == 1


def is_diagonal_step(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    ca, cb = key_to_coords(a), key_to_coords(b)
    if ca is None or cb is None:
        return False
    return abs(ca[0] - cb[0]) == 1 and abs(ca[1] - cb[1]) == 1


class FastGeometry:
    """Pre-computed neighbour tables for the 8x8 board."""

    _instance: FastGeometry | None = None

    def __init__(self) -> None:
        self._all_keys: tuple[str, ...] = tuple(
            f"{f}{r}" for r in range(1, BOARD_SIZE + 1) for f in FILES
        )
        self._orthogonal: dict[str, tuple[str, ...]] = {}
        self._diagonal: dict[str, tuple[str, ...]] = {}
        self._adjacent: dict[str, tuple[str, ...]] = {}
        self._scan: dict[str, tuple[str, ...]] = {}
        for key in self._all_keys:
            square = Square.from_code(key)
            orth = self._neighbours(square, ORTHOGONAL_DIRECTIONS)
            diag = self._neighbours(square, DIAGONAL_DIRECTIONS)
            self._orthogonal[key] = orth
            self._diagonal[key] = diag
            self._adjacent[key] = orth + diag
            self._scan[key] = self._neighbours(square, SCAN_DIRECTIONS)

    @staticmethod
    def _neighbours(
        square: Square, directions: tuple[tuple[int, int], ...]
    ) -> tuple[str, ...]:
        out = []
        for df, dr in directions:
            key = square.offset(df, dr)
            if key is not None:
                out.append(key)
        return tuple(out)

    @classmethod
    def get_instance(cls) -> FastGeometry:
        """Get singleton instance of FastGeometry."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def all_keys(self) -> tuple[str, ...]:
        return self._all_keys

    def orthogonal(self, key: str | None) -> tuple[str, ...]:
        return self._orthogonal.get(key, ()) if key else ()

    def diagonal(self, key: str | None) -> tuple[str, ...]:
        return self._diagonal.get(key, ()) if key else ()

    def adjacent(self, key: str | None) -> tuple[str, ...]:
        """Orthogonal neighbours followed by diagonal neighbours."""
        return self._adjacent.get(key, ()) if key else ()

    def scan(self, key: str | None) -> tuple[str, ...]:
        """8-neighbourhood in file-major order (df, then dr, both -1..1)."""
        return self._scan.get(key, ()) if key else ()


def get_fast_geometry() -> FastGeometry:
    """Module-level accessor for the shared geometry tables."""
    return FastGeometry.get_instance()

"""Integer grid primitives shared by the world, entities and renderer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Point:
    """Immutable 2D point with integer coordinates."""

    x: int
    y: int

    def __hash__(self) -> int:
        return self.x ^ self.y

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"

    def manhattan(self, other: "Point") -> int:
        diff = self - other
        return abs(diff.x) + abs(diff.y)

    def chebyshev(self, other: "Point") -> int:
        diff = self - other
        return max(abs(diff.x), abs(diff.y))


class Direction(Enum):
    """Cardinal directions in the order used by random wandering."""

    NORTH = 0
    WEST = 1
    SOUTH = 2
    EAST = 3

    @property
    def delta(self) -> tuple[int, int]:
        return _DELTAS[self]

    @classmethod
    def from_key(cls, key: str) -> "Direction":
        """Map a WASD command letter onto a direction."""

        try:
            return _KEYS[key]
        except KeyError:
            raise ValueError(f"No direction bound to {key!r}") from None


_DELTAS = {
    Direction.NORTH: (0, -1),
    Direction.WEST: (-1, 0),
    Direction.SOUTH: (0, 1),
    Direction.EAST: (1, 0),
}

_KEYS = {
    "w": Direction.NORTH,
    "a": Direction.WEST,
    "s": Direction.SOUTH,
    "d": Direction.EAST,
}

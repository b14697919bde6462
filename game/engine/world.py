"""World representation and collision utilities for the Save Desmond daycare map."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import yaml

from .geometry import Direction, Point

HOME_MARKER = "!"


class MapError(ValueError):
    """Raised when a map layout cannot be turned into a playable world."""


@dataclass(frozen=True)
class TileDefinition:
    """Static description of a single map tile."""

    glyph: str
    solid: bool = True


DEFAULT_TILESET = {
    ".": TileDefinition(" ", solid=False),
    "x": TileDefinition("x", solid=True),
    HOME_MARKER: TileDefinition(" ", solid=False),
}


class WorldMap:
    """Grid-based world with a home point and a visited overlay."""

    def __init__(
        self,
        layout: Sequence[str],
        tile_definitions: dict[str, TileDefinition] | None = None,
    ) -> None:
        if not layout:
            raise MapError("World layout must contain at least one row")
        row_lengths = {len(row) for row in layout}
        if len(row_lengths) != 1:
            raise MapError("World layout rows must be of equal length")

        self.width = row_lengths.pop()
        self.height = len(layout)
        if self.width == 0:
            raise MapError("World layout rows must not be empty")

        self._tiles = dict(tile_definitions or DEFAULT_TILESET)
        unknown = {tile_id for row in layout for tile_id in row} - set(self._tiles)
        if unknown:
            raise MapError(f"Unknown tile ids in layout: {''.join(sorted(unknown))}")

        self._grid = [list(row) for row in layout]
        self._visited = [[False] * self.width for _ in range(self.height)]
        self.home_point = self._find_home()

    def _find_home(self) -> Point:
        for y, row in enumerate(self._grid):
            for x, tile_id in enumerate(row):
                if tile_id == HOME_MARKER:
                    return Point(x, y)
        raise MapError(f"World layout has no home point ('{HOME_MARKER}')")

    # --------------------------------------------------------------------- tiles
    def tile(self, tile_x: int, tile_y: int) -> TileDefinition:
        return self._tiles[self._grid[tile_y][tile_x]]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def terrain_glyph(self, x: int, y: int) -> str:
        return self.tile(x, y).glyph

    # ------------------------------------------------------------------- visited
    def clear_visited(self) -> None:
        for row in self._visited:
            for x in range(self.width):
                row[x] = False

    def mark_visited(self, point: Point) -> None:
        self._visited[point.y][point.x] = True

    def is_visited(self, x: int, y: int) -> bool:
        return self._visited[y][x]

    # ------------------------------------------------------------------ collision
    def collides(self, x: int, y: int) -> bool:
        """Out-of-bounds counts as a wall."""

        if not self.in_bounds(x, y):
            return True
        return self.tile(x, y).solid

    def try_move(
        self,
        pos: Point,
        direction: Direction,
        distance: int,
        mark_visited: bool = False,
    ) -> Point:
        """Walk up to ``distance`` tiles, stopping short of the first wall."""

        dx, dy = direction.delta
        curr_x, curr_y = pos.x, pos.y
        if mark_visited:
            self._visited[curr_y][curr_x] = True

        for _ in range(distance):
            next_x, next_y = curr_x + dx, curr_y + dy
            if self.collides(next_x, next_y):
                break
            curr_x, curr_y = next_x, next_y
            if mark_visited:
                self._visited[curr_y][curr_x] = True
        return Point(curr_x, curr_y)


def load_world(path: Path) -> WorldMap:
    """Build a :class:`WorldMap` from a YAML map file."""

    try:
        with open(path, "r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise MapError(f"Cannot read map {path}: {exc}") from exc

    layout = data.get("layout") if isinstance(data, dict) else None
    if not isinstance(layout, list) or not all(isinstance(row, str) for row in layout):
        raise MapError(f"Map {path} needs a 'layout' list of strings")
    return WorldMap(layout)

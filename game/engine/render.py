"""Text renderer producing the occluded board shown before each prompt."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .entities import Desmond, Robot, Zombie
from .geometry import Point
from .world import WorldMap

UNSEEN = "?"
VISITED_UNSEEN = "$"
HOME = "!"
ENEMY = "E"
DESMOND = "D"
ROBOT = "R"

LEGEND = (
    "BRACKETS",
    "[ ] - unvisited",
    "( ) - visited",
    "{ } - interactable (i.e. robot can or has picked up Desmond)",
    "",
    "TILES",
    f"{UNSEEN} - unvisited and out of sight",
    f"{VISITED_UNSEEN} - visited, but out of sight",
    "",
    f"{ROBOT} - robot",
    "x - wall",
    f"{HOME} - front door",
    f"{DESMOND} - Desmond",
    f"{ENEMY} - enemy",
)


class MapRenderer:
    """Builds the sight-limited character grid around the robot."""

    def __init__(self, world: WorldMap, sight_dist: int, warn_dist: int) -> None:
        self.world = world
        self.sight_dist = sight_dist
        self.warn_dist = warn_dist

    def in_sight(self, viewer: Point, target: Point) -> bool:
        return viewer.chebyshev(target) <= self.sight_dist

    # ------------------------------------------------------------------- tiles
    def build_map(self, robot: Robot, desmond: Desmond, zombies: Iterable[Zombie]) -> List[List[str]]:
        world = self.world
        eye = robot.pos
        result: List[List[str]] = []
        for y in range(world.height):
            row: List[str] = []
            for x in range(world.width):
                if self.in_sight(eye, Point(x, y)):
                    row.append(world.terrain_glyph(x, y))
                elif world.is_visited(x, y):
                    row.append(VISITED_UNSEEN)
                else:
                    row.append(UNSEEN)
            result.append(row)

        markers: List[tuple[Point, str]] = [(world.home_point, HOME)]
        markers.extend((zombie.pos, ENEMY) for zombie in zombies)
        markers.append((desmond.pos, DESMOND))
        for pos, glyph in markers:
            if self.in_sight(eye, pos):
                result[pos.y][pos.x] = glyph

        result[eye.y][eye.x] = ROBOT
        return result

    def render(self, robot: Robot, desmond: Desmond, zombies: Sequence[Zombie]) -> List[str]:
        """Return the board as printable lines, header first."""

        grid = self.build_map(robot, desmond, zombies)
        can_pick_up = robot.pos == desmond.pos
        lines = ["   " + "".join(f"{x:2d} " for x in range(self.world.width))]
        for y, row in enumerate(grid):
            cells = [f"{y:2d} "]
            for x, glyph in enumerate(row):
                if can_pick_up and robot.pos == Point(x, y):
                    cells.append(f"{{{glyph}}}")
                elif self.world.is_visited(x, y):
                    cells.append(f"({glyph})")
                else:
                    cells.append(f"[{glyph}]")
            lines.append("".join(cells))
        return lines

    # ------------------------------------------------------------------ status
    def proximity_message(self, robot: Robot, desmond: Desmond) -> str:
        distance = robot.pos.chebyshev(desmond.pos)
        if distance == 0:
            if robot.holding:
                return "You have Desmond! Get back to the front door."
            return "You can now pick up Desmond! Use the 'p' command."
        if distance <= self.warn_dist:
            if distance <= self.sight_dist:
                return "Desmond is in view. Look for the 'D' symbol on the map."
            return "Desmond is close, but not quite within sight."
        return "Desmond isn't around these parts."

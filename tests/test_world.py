"""Map loading, collision and movement resolution."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
GAME_ROOT = REPO_ROOT / "game"
if str(GAME_ROOT) not in sys.path:
    sys.path.insert(0, str(GAME_ROOT))

from engine.geometry import Direction, Point
from engine.world import MapError, WorldMap, load_world
import settings as S


@pytest.fixture()
def daycare() -> WorldMap:
    return load_world(S.MAP_PATH)


def test_shipped_map_dimensions_and_home(daycare: WorldMap) -> None:
    assert (daycare.width, daycare.height) == (20, 20)
    assert daycare.home_point == Point(0, 10)
    assert not daycare.collides(0, 10)


def test_out_of_bounds_collides(daycare: WorldMap) -> None:
    assert daycare.collides(-1, 0)
    assert daycare.collides(0, -1)
    assert daycare.collides(20, 5)
    assert daycare.collides(5, 20)
    assert daycare.collides(3, 0)  # wall
    assert not daycare.collides(0, 0)


def test_sprint_east_from_front_door(daycare: WorldMap) -> None:
    assert daycare.try_move(daycare.home_point, Direction.EAST, 3) == Point(3, 10)


def test_move_stops_before_wall(daycare: WorldMap) -> None:
    # (15, 10) starts a wall segment
    assert daycare.try_move(Point(13, 10), Direction.EAST, 3) == Point(14, 10)


def test_move_into_wall_or_edge_stays_put(daycare: WorldMap) -> None:
    home = daycare.home_point
    assert daycare.try_move(home, Direction.NORTH, 2) == home
    assert daycare.try_move(home, Direction.WEST, 1) == home
    assert daycare.try_move(Point(5, 5), Direction.SOUTH, 0) == Point(5, 5)


def test_try_move_never_lands_on_a_wall(daycare: WorldMap) -> None:
    for y in range(daycare.height):
        for x in range(daycare.width):
            if daycare.collides(x, y):
                continue
            for direction in Direction:
                for dist in range(4):
                    end = daycare.try_move(Point(x, y), direction, dist)
                    assert not daycare.collides(end.x, end.y)


def test_visited_marking(daycare: WorldMap) -> None:
    daycare.clear_visited()
    daycare.try_move(Point(1, 10), Direction.EAST, 2, mark_visited=True)
    assert [daycare.is_visited(x, 10) for x in range(5)] == [False, True, True, True, False]

    daycare.try_move(Point(5, 10), Direction.EAST, 2)
    assert not daycare.is_visited(6, 10)

    daycare.clear_visited()
    assert not any(daycare.is_visited(x, 10) for x in range(daycare.width))


def test_layout_without_home_is_rejected() -> None:
    with pytest.raises(MapError, match="no home point"):
        WorldMap(["...", ".x."])


def test_ragged_layout_is_rejected() -> None:
    with pytest.raises(MapError, match="equal length"):
        WorldMap(["!..", ".."])


def test_unknown_tiles_are_rejected() -> None:
    with pytest.raises(MapError, match="Unknown tile ids"):
        WorldMap(["!.#"])


def test_first_home_marker_wins() -> None:
    world = WorldMap(["..!", "!.."])
    assert world.home_point == Point(2, 0)


def test_load_world_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "tiny.yaml"
    path.write_text('layout:\n  - "!.x"\n  - "..."\n', encoding="utf-8")
    world = load_world(path)
    assert world.home_point == Point(0, 0)
    assert world.collides(2, 0)


def test_load_world_errors(tmp_path: Path) -> None:
    with pytest.raises(MapError):
        load_world(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("layout: 12\n", encoding="utf-8")
    with pytest.raises(MapError, match="layout"):
        load_world(bad)


def test_point_helpers() -> None:
    a, b = Point(1, 2), Point(4, -2)
    assert str(a) == "(1, 2)"
    assert a - b == Point(-3, 4)
    assert a.manhattan(b) == 7
    assert a.chebyshev(b) == 4
    assert hash(Point(3, 5)) == 3 ^ 5
    assert {Point(1, 2), Point(1, 2)} == {a}


def test_direction_keys() -> None:
    assert Direction.from_key("w").delta == (0, -1)
    assert Direction.from_key("a") is Direction.WEST
    assert Direction.from_key("s").delta == (0, 1)
    assert Direction.from_key("d") is Direction.EAST
    with pytest.raises(ValueError):
        Direction.from_key("q")

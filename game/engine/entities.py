"""Game entities and their per-turn behaviour.

Each entity owns a grid position and implements ``do_tick``; the turn engine
ticks them in a fixed order: robot, Desmond, then every zombie.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from .geometry import Direction, Point

if TYPE_CHECKING:
    from .game_state import GameState


def random_chance(rng: random.Random, num: int, den: int) -> bool:
    """Return True ``num/den`` of the time."""

    return rng.randrange(den) < num


def random_direction(rng: random.Random) -> Direction:
    return Direction(rng.randrange(4))


@dataclass(frozen=True)
class MoveAction:
    direction: Direction
    distance: int = 1


@dataclass(frozen=True)
class PickupAction:
    pass


RobotAction = Union[MoveAction, PickupAction]


class Entity:
    """Anything with a position on the board."""

    def __init__(self, pos: Point) -> None:
        self.pos = pos

    def do_tick(self, gs: "GameState") -> None:
        raise NotImplementedError


class Robot(Entity):
    """The player-controlled robot; starts at the front door."""

    def __init__(self, pos: Point) -> None:
        super().__init__(pos)
        self.holding = False
        self.action: Optional[RobotAction] = None

    def set_action(self, action: RobotAction) -> None:
        self.action = action

    def do_tick(self, gs: "GameState") -> None:
        action, self.action = self.action, None
        if action is not None:
            apply_action(action, self, gs)

        if self.holding and self.pos == gs.world.home_point:
            gs.trigger_win()
            return
        if gs.check_enemies(self.pos) is not None:
            gs.trigger_game_over()


class Desmond(Entity):
    """The child to rescue: wanders a little until the robot picks him up."""

    MOVE_CHANCE = (1, 3)

    def __init__(self, pos: Point) -> None:
        super().__init__(pos)
        self.picked_up = False

    def do_tick(self, gs: "GameState") -> None:
        if self.picked_up:
            self.pos = gs.robot.pos
            return
        if random_chance(gs.rng, *self.MOVE_CHANCE):
            self.pos = gs.world.try_move(self.pos, random_direction(gs.rng), 1)


class Zombie(Entity):
    """Shambles about at random and never steps onto another zombie."""

    MOVE_CHANCE = (2, 5)

    def do_tick(self, gs: "GameState") -> None:
        if not random_chance(gs.rng, *self.MOVE_CHANCE):
            return
        next_pos = gs.world.try_move(self.pos, random_direction(gs.rng), 1)
        if gs.check_enemies(next_pos) is None:
            self.pos = next_pos


def apply_action(action: RobotAction, robot: Robot, gs: "GameState") -> None:
    """Carry out one queued robot action."""

    if isinstance(action, MoveAction):
        robot.pos = gs.world.try_move(robot.pos, action.direction, action.distance, mark_visited=True)
    elif isinstance(action, PickupAction):
        _pickup(robot, gs)
    else:
        raise TypeError(f"Unsupported robot action {action!r}")


def _pickup(robot: Robot, gs: "GameState") -> None:
    if robot.holding:
        gs.say("The robot did nothing because it already has Desmond.")
        return
    if robot.pos == gs.desmond.pos:
        gs.say("The robot picked up Desmond.")
        robot.holding = True
        gs.desmond.picked_up = True
    else:
        gs.say("The robot tried to pick up Desmond. There was no Desmond to pick up.")

"""Turn engine for Save Desmond: board state, command handlers and scoring."""

from __future__ import annotations

import random
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, TextIO

from .commands import (
    CommandError,
    CommandExecutionError,
    CommandParser,
    InvalidArgumentError,
    describe_error,
)
from .debug import DebugMode
from .entities import Desmond, MoveAction, PickupAction, Robot, Zombie
from .geometry import Direction, Point
from .leaderboard import Score
from .render import LEGEND, MapRenderer
from .world import WorldMap

# ``python game/main.py`` does not put the repository root on sys.path, so make
# ``config`` importable the same way the rest of the engine expects.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import game_config as CFG

PROMPT = 'Input command ("help" for help): '

HELP_TEXT = (
    "Here's a list of commands that you can issue to the robot:",
    "==========================================================",
    "w <dist>",
    "  Try to move north by <dist> metres.",
    "a <dist>",
    "  Try to move west by <dist> metres.",
    "s <dist>",
    "  Try to move south by <dist> metres.",
    "d <dist>",
    "  Try to move east by <dist> metres.",
    "NOTE 0: the robot can only move up to {max_dist} metres at a time.",
    "NOTE 1: if no distance is specified, the default is {default_dist}.",
    "",
    "p",
    "  Pick up Desmond. This only works if the robot and Desmond ",
    "  are on the same tile (indicated using curly brackets {{}})",
    "",
    "give-up",
    "  Give up on this game. (then again, why would you??)",
    "",
    "help",
    "  Show the command list again, in case you forget.",
    "help legend",
    "  Show a legend of the map, in case you are confused.",
    "help debug",
    "  Show a list of debugging commands.",
    "  (e.g. forcing a win, showing Desmond's position, etc...)",
    "==========================================================",
)

DEBUG_HELP_TEXT = (
    "Here's a list of commands for debugging:",
    "========================================",
    "debug desmond",
    "  Prints Desmond's current grid coordinates.",
    "debug force-win",
    "  Magically causes you to win.",
    "debug quit",
    "  Immediately shuts down the program.",
    "========================================",
)


class Result(Enum):
    WIN = "win"
    GAME_OVER = "game-over"


class Phase(Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    WON = "won"
    GAME_OVER = "game-over"


class UnsatisfiableMapError(RuntimeError):
    """No valid spawn point was found within the configured attempt limit."""


@dataclass(frozen=True)
class GameRules:
    sight_dist: int = 2
    warn_dist: int = 5
    clear_zone_size: int = 3
    num_zombies: int = 15
    min_move_dist: int = 1
    max_move_dist: int = 3
    default_move_dist: int = 1
    spawn_attempt_limit: Optional[int] = 10_000


def read_stdin_line() -> str:
    line = sys.stdin.readline()
    if not line:
        raise EOFError("Input stream closed")
    return line.rstrip("\r\n")


class GameState:
    """Global state of one play session and the console commands acting on it."""

    def __init__(
        self,
        world: WorldMap,
        rules: GameRules | None = None,
        debug: DebugMode | None = None,
        rng: random.Random | None = None,
        out: TextIO | None = None,
        read_line: Callable[[], str] | None = None,
    ) -> None:
        self.world = world
        self.rules = rules or GameRules()
        self.debug = debug or DebugMode()
        self.rng = rng or random.Random()
        self.out = out or sys.stdout
        self._read_line = read_line or read_stdin_line
        self.renderer = MapRenderer(world, self.rules.sight_dist, self.rules.warn_dist)
        self.parser = self._init_command_parser()

        self.robot: Optional[Robot] = None
        self.desmond: Optional[Desmond] = None
        self.enemies: List[Zombie] = []
        self.running = False
        self.last_result: Optional[Result] = None
        self.points = 0
        self.turn_counter = 0
        self.name = ""

    # ----------------------------------------------------------------- lifecycle
    def init_game(self, name: str) -> None:
        self.world.clear_visited()
        self.world.mark_visited(self.world.home_point)
        self.robot = Robot(self.world.home_point)
        # Desmond spawns before the zombies, so only zombies avoid each other.
        self.enemies = []
        self.desmond = Desmond(self.gen_spawn_point())
        for _ in range(self.rules.num_zombies):
            self.enemies.append(Zombie(self.gen_spawn_point()))

        self.running = True
        self.last_result = None
        self.points = 0
        self.turn_counter = 0
        self.name = name

    @property
    def phase(self) -> Phase:
        if self.running:
            return Phase.RUNNING
        if self.last_result is Result.WIN:
            return Phase.WON
        if self.last_result is Result.GAME_OVER:
            return Phase.GAME_OVER
        return Phase.NOT_STARTED

    def game_loop(self) -> None:
        """Play one round: prompt until a command advances the turn, then tick."""

        status = -1
        while status != 0 and self.running:
            self.display_status()
            self.out.write(PROMPT)
            self.out.flush()
            line = self._read_line()
            try:
                status = self.parser.execute(line)
            except CommandError as exc:
                self.report_error(exc)
                continue
            self.say("")

        # give-up and force-win end the game without a tick
        if not self.running:
            return

        self.update_all_objects()
        self.update_counters()
        self.say("")

    def trigger_game_over(self) -> None:
        self.running = False
        self.last_result = Result.GAME_OVER

    def trigger_win(self) -> None:
        self.running = False
        self.last_result = Result.WIN

    def update_all_objects(self) -> None:
        self.robot.do_tick(self)
        self.desmond.do_tick(self)
        for enemy in self.enemies:
            enemy.do_tick(self)

    def update_counters(self) -> None:
        # Manhattan distance: the fewest single-tile moves left to reach Desmond.
        self.points += self.robot.pos.manhattan(self.desmond.pos)
        self.turn_counter += 1

    # ------------------------------------------------------------------- queries
    def check_enemies(self, point: Point) -> Optional[Zombie]:
        for enemy in self.enemies:
            if enemy.pos == point:
                return enemy
        return None

    def gen_spawn_point(self) -> Point:
        """Pick a free tile outside the clear zone around the front door."""

        home = self.world.home_point
        clear = self.rules.clear_zone_size
        limit = self.rules.spawn_attempt_limit
        attempts = 0
        while limit is None or attempts < limit:
            attempts += 1
            x = self.rng.randrange(self.world.width)
            y = self.rng.randrange(self.world.height)
            if abs(x - home.x) <= clear or abs(y - home.y) <= clear:
                continue
            if self.world.collides(x, y):
                continue
            candidate = Point(x, y)
            if self.check_enemies(candidate) is None:
                return candidate
        raise UnsatisfiableMapError(
            f"No spawn point found after {attempts} attempts; the map leaves no free tile "
            f"more than {clear} tiles from the front door on both axes"
        )

    def music_state(self) -> int:
        if self.robot.pos.chebyshev(self.desmond.pos) > self.rules.warn_dist:
            return 0
        if self.robot.holding:
            return 2
        return 1

    def create_score(self) -> Score:
        return Score(self.name, self.points)

    # ------------------------------------------------------------------- display
    def say(self, message: str = "") -> None:
        self.out.write(message + "\n")

    def display_status(self) -> None:
        self.say(self.renderer.proximity_message(self.robot, self.desmond))
        self.say(f"Current coordinates: {self.robot.pos}")
        self.say(f"Home point: {self.world.home_point}")
        self.say(f"Turn number: {self.turn_counter}")
        for line in self.renderer.render(self.robot, self.desmond, self.enemies):
            self.say(line)

    def report_error(self, error: CommandError) -> None:
        lines = describe_error(error)
        for line in lines:
            self.say(line)
        if isinstance(error, CommandExecutionError):
            CFG.log_error(" | ".join(lines))

    # ------------------------------------------------------------------ commands
    def _init_command_parser(self) -> CommandParser:
        parser = CommandParser()
        parser.register_command("help", self.cmd_help)
        for key in ("w", "a", "s", "d"):
            parser.register_command(key, self.cmd_move)
        parser.register_command("p", self.cmd_pickup)
        parser.register_command("debug", self.cmd_debug)
        parser.register_command("give-up", self.cmd_give_up)
        return parser

    def cmd_help(self, args: List[str]) -> int:
        if len(args) == 2 and args[1] == "debug":
            if not self.debug.enabled:
                self.say("Debugging is NOT enabled.")
                return 1
            for line in DEBUG_HELP_TEXT:
                self.say(line)
            return 1
        if len(args) == 2 and args[1] == "legend":
            self.say("Here's a legend:")
            self.say("=" * 60)
            for line in LEGEND:
                self.say(line)
            self.say("=" * 60)
            return 1

        for line in HELP_TEXT:
            self.say(line.format(max_dist=self.rules.max_move_dist, default_dist=self.rules.default_move_dist))
        return 1

    def cmd_move(self, args: List[str]) -> int:
        rules = self.rules
        if len(args) > 2:
            raise InvalidArgumentError(f"Command {args[0]} only takes one argument ({args[0]} <dist>)")
        if len(args) == 2:
            try:
                dist = int(args[1])
            except ValueError:
                raise InvalidArgumentError(f"Distance must be a whole number (got {args[1]!r})") from None
            if not rules.min_move_dist <= dist <= rules.max_move_dist:
                raise InvalidArgumentError(
                    f"The robot can only move {rules.min_move_dist}-{rules.max_move_dist} tiles. (got {dist})"
                )
        else:
            dist = rules.default_move_dist

        self.robot.set_action(MoveAction(Direction.from_key(args[0]), dist))
        return 0

    def cmd_pickup(self, args: List[str]) -> int:
        if len(args) != 1:
            raise InvalidArgumentError(f"Command {args[0]} takes no arguments")
        self.robot.set_action(PickupAction())
        return 0

    def cmd_debug(self, args: List[str]) -> int:
        if not self.debug.enabled:
            raise PermissionError("Debug mode is not enabled.")
        if len(args) != 2:
            raise InvalidArgumentError(
                f"Command {args[0]} only takes two arguments ({args[0]} <option...>); "
                "see 'help debug' for more info"
            )

        option = args[1]
        if option == "desmond":
            self.say(f"Desmond's position is {self.desmond.pos}")
            return 1
        if option == "quit":
            raise SystemExit(0)
        if option == "force-win":
            self.trigger_win()
            return 0
        self.say(f"Unknown debug option '{option}'; see 'help debug'.")
        return 1

    def cmd_give_up(self, args: List[str]) -> int:
        self.say("You just gave up on poor Desmond. How could you??")
        self.trigger_game_over()
        return 0

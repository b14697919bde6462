"""Entry point for the Save Desmond console game."""

from __future__ import annotations

import argparse
import os
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, TextIO

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

GAME_DIR = Path(__file__).resolve().parent
REPO_ROOT = GAME_DIR.parent
for _path in (GAME_DIR, REPO_ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from config import game_config as CFG
from engine.audio import AudioUnavailableError, MixerBackend, MusicEngine, SilentBackend
from engine.debug import DebugMode
from engine.game_state import GameRules, GameState, Result, UnsatisfiableMapError, read_stdin_line
from engine.leaderboard import Leaderboard, LeaderboardError, Score
from engine.theme import Theme, ThemeError, load_theme
from engine.world import MapError, load_world
import settings as S


MAIN_MENU = ("Play", "Leaderboard", "Enable Debugging", "Exit")
PLAY_IDX, LEADERBOARD_IDX, DEBUG_IDX, EXIT_IDX = range(len(MAIN_MENU))

NAME_WIDTH = 20
POINTS_WIDTH = 5

TITLE_ART = (
    "==========================================================================",
    "/----   8   |   | +-----      +---\\  +----- /---- \\   /  /=\\  |\\  | +---\\ ",
    "|      / \\  |   | |           |    | |      |     |\\ /| /   \\ | | | |    |",
    "\\---\\ /   \\ \\   / +-----      |    | +----- \\---\\ | v | |   | | | | |    |",
    "    | |---|  \\ /  |           |    | |          | |   | \\   / | | | |    |",
    "----/ |   |   v   +-----      +---/  +----- ----/ |   |  \\=/  |  \\| +---/ ",
    "==========================================================================",
    "                               By Jacky Guo                               ",
    "",
)

WIN_ART = (
    "=========================================",
    "\\   /  /=\\  |   |      |   |  /=\\  |\\  |",
    " \\ /  /   \\ |   |      |   | /   \\ | | |",
    "  Y   |   | |   |      | 8 | |   | | | |",
    "  |   \\   / |   |      |/ \\| \\   / | | |",
    "  |    \\=/   \\=/       /   \\  \\=/  |  \\|",
    "=========================================",
)

GAME_OVER_ART = (
    "======================================================",
    " /---   8   \\   / +-----       /=\\  |   | +----- +===\\",
    "/      / \\  |\\ /| |           /   \\ |   | |      |   |",
    "|   + /   \\ | v | +-----      |   | \\   / +----- +===/",
    "\\   | |---| |   | |           \\   /  \\ /  |      |\\__ ",
    " \\--+ |   | |   | +-----       \\=/    v   +----- |   \\",
    "======================================================",
)

INTRO_PAGES = (
    (
        "The year is 21XX. A zombie apocalypse has befallen humanity. You're lucky -- ",
        "you made it to a safety shelter in time and have not been plagued. We've still",
        "been on the lookout for more survivors though, and we have our sights set on a",
        "local daycare. While most were evacuated from the daycare, one kid named Des-",
        "-mond was on the potty at the time and missed the call. I'm convinced he's ",
        "alive though. ",
    ),
    (
        "You will be guiding a robot that we've dropped off at the front of the daycare.",
        "Your job is to find Desmond, pick him up, and bring him back to the front of ",
        "the daycare; all while avoiding the zombies inside the building. Points in this",
        "game are added based on a) how many turns you take and b) how close you are to ",
        "Desmond on each turn. The lower your score is, the better.",
    ),
    (
        'To move the robot around, just use "w", "a", "s", and "d". Adding a number af-',
        '-terwards, like "s 2" or "d 3", allow the robot to clear 2 or 3 tiles in one ',
        'quick sprint. To pick up Desmond, move on top of him, then use "p".',
    ),
)


@dataclass
class GameConfig:
    map_path: Path
    theme_path: Path
    leaderboard_path: Path
    rules: GameRules
    mute: bool
    debug_enabled: bool
    seed: Optional[int]
    fadeout_ms: int
    transition_ms: int
    nominal_volume: int
    mixer_frequency: int


class GameApp:
    """Console front-end: menus, screens and the play loop."""

    def __init__(
        self,
        config: GameConfig,
        out: TextIO | None = None,
        read_line: Callable[[], str] | None = None,
    ) -> None:
        self.config = config
        self.out = out or sys.stdout
        self._read_line = read_line or read_stdin_line

        self.theme: Theme = load_theme(config.theme_path)
        self.world = load_world(config.map_path)
        self.debug = DebugMode(config.debug_enabled, CFG.get_debug_password_hash())
        self.state = GameState(
            self.world,
            rules=config.rules,
            debug=self.debug,
            rng=random.Random(config.seed),
            out=self.out,
            read_line=self._read_line,
        )

    # ----------------------------------------------------------------- lifecycle
    def run(self) -> int:
        self.title_art()
        self.say("Initializing...")
        with Leaderboard(self.config.leaderboard_path) as lb, self.open_music() as me:
            while True:
                choice = self.prompt_menu("MAIN MENU", MAIN_MENU)
                if choice == EXIT_IDX:
                    break
                if choice == PLAY_IDX:
                    self.play(lb, me)
                elif choice == LEADERBOARD_IDX:
                    self.show_leaderboard(lb)
                elif choice == DEBUG_IDX:
                    self.enable_debug()
        return 0

    def open_music(self) -> MusicEngine:
        if self.config.mute:
            backend = SilentBackend(self.theme.always_on + self.theme.optional)
        else:
            backend = MixerBackend(self.theme, frequency=self.config.mixer_frequency)
        return MusicEngine.from_theme(
            self.theme,
            backend,
            fadeout_ms=self.config.fadeout_ms,
            transition_ms=self.config.transition_ms,
            nominal_volume=self.config.nominal_volume,
        )

    def play(self, lb: Leaderboard, me: MusicEngine) -> Result:
        name = self.ask("What is your name? | ")
        self.say(f"That's a nice name, {name}.")
        self.say()
        if not self.ask("I should tell you what's happened. (type anything to skip) "):
            self.intro_text()

        gs = self.state
        gs.init_game(name)
        me.start()
        while gs.running:
            gs.game_loop()
            me.transition(gs.music_state())
        me.stop()

        if gs.last_result is Result.WIN:
            self.win_screen(lb)
        else:
            self.game_over_screen()
        return gs.last_result

    # -------------------------------------------------------------------- prompts
    def say(self, message: str = "") -> None:
        self.out.write(message + "\n")

    def ask(self, prompt: str) -> str:
        self.out.write(prompt)
        self.out.flush()
        return self._read_line()

    def prompt_menu(self, title: str, options: Sequence[str]) -> int:
        """Show a numbered menu until a valid choice is made; returns its 0-based index."""

        if not options:
            raise ValueError("A menu needs at least one option")
        while True:
            self.say(title)
            for i, option in enumerate(options, start=1):
                self.say(f"{i:2d}) {option}")
            line = self.ask("> ")
            try:
                choice = int(line)
            except ValueError as exc:
                self.say(f"Error reading value. ({type(exc).__name__})")
                self.say(str(exc))
            else:
                if 1 <= choice <= len(options):
                    self.say()
                    return choice - 1
                self.say(f"Value out of range. Valid options range from 1 to {len(options)}")
            self.say()

    def enable_debug(self) -> None:
        if self.debug.enabled:
            self.say("Debugging is already enabled!")
            self.say()
            return
        while True:
            line = self.ask("Password (type nothing to exit): ")
            if not line:
                break
            if self.debug.promote(line):
                self.say("Debugging is enabled")
                break
            self.say("Wrong password.")

    # -------------------------------------------------------------------- screens
    def title_art(self) -> None:
        for line in TITLE_ART:
            self.say(line)

    def intro_text(self) -> None:
        for page in INTRO_PAGES:
            for line in page:
                self.say(line)
            self.ask("(Press Enter to continue)")
            self.say()

    def show_leaderboard(self, lb: Leaderboard) -> None:
        for line in format_leaderboard(lb.all_scores()):
            self.say(line)
        self.say()

    def win_screen(self, lb: Leaderboard) -> None:
        gs = self.state
        for line in WIN_ART:
            self.say(line)
        self.say(f"Score: {gs.points}")
        self.say(f"Thank you for getting him out safely, {gs.name}. His parents have been")
        self.say("waiting for so long, and they've been anxiously waiting to see him.")
        self.say("(You hear Desmond rushing towards his parents, anxious to hug his mom and dad.)")
        self.say()
        lb.add_score(gs.create_score())

    def game_over_screen(self) -> None:
        for line in GAME_OVER_ART:
            self.say(line)
        self.say()


def format_leaderboard(scores: Iterable[Score]) -> List[str]:
    """Table of scores, best (lowest) first; long names end in ``...``."""

    scores = list(scores)
    if not scores:
        return ["No leaderboard data available..."]
    lines = [
        f"{'Name':<{NAME_WIDTH}} | {'Score':<{POINTS_WIDTH}}",
        f"{'-' * NAME_WIDTH}-+-{'-' * POINTS_WIDTH}",
    ]
    for score in scores:
        name = score.name
        if len(name) > NAME_WIDTH:
            name = name[: NAME_WIDTH - 3] + "..."
        lines.append(f"{name:<{NAME_WIDTH}} | {score.points:>{POINTS_WIDTH}d}")
    return lines


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="save-desmond", description="Find Desmond and bring him home.")
    parser.add_argument("--mute", action="store_true", help="play without opening the audio mixer")
    parser.add_argument("--debug", action="store_true", help="start with debugging commands enabled")
    parser.add_argument("--seed", type=int, default=S.SEED, help="seed for reproducible games")
    parser.add_argument("--map", type=Path, default=S.MAP_PATH, help="YAML map layout to play on")
    parser.add_argument("--leaderboard", type=Path, default=S.LEADERBOARD_PATH, help="leaderboard JSON file")
    return parser.parse_args(None if argv is None else list(argv))


def build_config(args: argparse.Namespace) -> GameConfig:
    rules = GameRules(
        sight_dist=S.SIGHT_DIST,
        warn_dist=S.WARN_DIST,
        clear_zone_size=S.CLEAR_ZONE_SIZE,
        num_zombies=S.NUM_ZOMBIES,
        min_move_dist=S.MIN_MOVE_DIST,
        max_move_dist=S.MAX_MOVE_DIST,
        default_move_dist=S.DEFAULT_MOVE_DIST,
        spawn_attempt_limit=S.SPAWN_ATTEMPT_LIMIT,
    )
    return GameConfig(
        map_path=args.map,
        theme_path=S.THEME_PATH,
        leaderboard_path=args.leaderboard,
        rules=rules,
        mute=args.mute,
        debug_enabled=args.debug or S.DEBUG_ENABLED,
        seed=args.seed,
        fadeout_ms=S.FADEOUT_MS,
        transition_ms=S.TRANSITION_MS,
        nominal_volume=S.NOMINAL_VOLUME,
        mixer_frequency=S.MIXER_FREQUENCY,
    )


def main(argv: Iterable[str] | None = None) -> int:
    config = build_config(parse_args(argv))
    try:
        app = GameApp(config)
        return app.run()
    except AudioUnavailableError as exc:
        CFG.log_error(f"{type(exc).__name__}: {exc}")
        print(f"save-desmond: {exc} (try --mute)", file=sys.stderr)
        return 1
    except (MapError, ThemeError, LeaderboardError, UnsatisfiableMapError) as exc:
        CFG.log_error(f"{type(exc).__name__}: {exc}")
        print(f"save-desmond: {exc}", file=sys.stderr)
        return 1
    except (EOFError, KeyboardInterrupt):
        print()
        return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

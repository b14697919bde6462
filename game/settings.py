from pathlib import Path

CONTENT_DIR = Path(__file__).resolve().parent / "content"

# ---- World ----
MAP_PATH = CONTENT_DIR / "maps" / "daycare.yaml"
SIGHT_DIST = 2           # Chebyshev radius the robot can see
WARN_DIST = 5            # Chebyshev radius for the "Desmond is close" hints and music
CLEAR_ZONE_SIZE = 3      # spawn points must be further than this from home on both axes
NUM_ZOMBIES = 15
SPAWN_ATTEMPT_LIMIT = 10_000  # None retries forever
SEED = None              # set an int for reproducible games

# ---- Robot ----
MIN_MOVE_DIST = 1
MAX_MOVE_DIST = 3
DEFAULT_MOVE_DIST = 1

# ---- Music ----
THEME_PATH = CONTENT_DIR / "audio" / "main_theme.yaml"
NOMINAL_VOLUME = 100
FADEOUT_MS = 500
TRANSITION_MS = 1000
MIXER_FREQUENCY = 22050

# ---- Leaderboard ----
LEADERBOARD_PATH = Path.cwd() / "leaderboard.json"

# ---- Debugging ----
DEBUG_ENABLED = False    # use --debug or the "Enable Debugging" menu entry

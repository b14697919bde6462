"""Persistent leaderboard of finished games."""

from __future__ import annotations

import json
import sys
from dataclasses import asdict, dataclass
from functools import total_ordering
from pathlib import Path
from typing import List, Tuple

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import game_config as CFG


class LeaderboardError(IOError):
    """Raised when the leaderboard file exists but cannot be understood."""


@total_ordering
@dataclass(frozen=True)
class Score:
    """One leaderboard entry; sorts by points, then by name."""

    name: str
    points: int

    def __lt__(self, other: "Score") -> bool:
        if not isinstance(other, Score):
            return NotImplemented
        return (self.points, self.name) < (other.points, other.name)


class Leaderboard:
    """Sorted list of scores, loaded from and saved to a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._scores: List[Score] = self._load() if self.path.exists() else []

    def _load(self) -> List[Score]:
        try:
            with open(self.path, "r", encoding="utf-8") as fp:
                data = json.load(fp)
        except (OSError, json.JSONDecodeError) as exc:
            raise LeaderboardError(f"Cannot read leaderboard {self.path}: {exc}") from exc

        entries = data.get("scores") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise LeaderboardError(f"Unexpected data in leaderboard {self.path}")
        scores: List[Score] = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise LeaderboardError(f"Unexpected entry in leaderboard {self.path}: {entry!r}")
            name, points = entry.get("name"), entry.get("points")
            if not isinstance(name, str) or not isinstance(points, int):
                raise LeaderboardError(f"Unexpected entry in leaderboard {self.path}: {entry!r}")
            scores.append(Score(name, points))
        return sorted(scores)

    def add_score(self, score: Score) -> None:
        self._scores.append(score)
        # one insertion-sort pass; the rest of the list is already sorted
        i = len(self._scores) - 1
        while i > 0 and self._scores[i] < self._scores[i - 1]:
            self._scores[i], self._scores[i - 1] = self._scores[i - 1], self._scores[i]
            i -= 1

    def all_scores(self) -> Tuple[Score, ...]:
        return tuple(self._scores)

    def save(self) -> None:
        payload = {"scores": [asdict(score) for score in self._scores]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as fp:
                json.dump(payload, fp, indent=2)
        except OSError as exc:
            raise LeaderboardError(f"Cannot write leaderboard {self.path}: {exc}") from exc

    def close(self) -> None:
        self.save()

    def __enter__(self) -> "Leaderboard":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        # an exception is already propagating; a failed save must not replace it
        try:
            self.close()
        except LeaderboardError as save_error:
            CFG.log_error(f"{type(save_error).__name__}: {save_error}")

"""Leaderboard ordering and persistence."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
GAME_ROOT = REPO_ROOT / "game"
if str(GAME_ROOT) not in sys.path:
    sys.path.insert(0, str(GAME_ROOT))

from engine import leaderboard
from engine.leaderboard import Leaderboard, LeaderboardError, Score


def test_scores_order_by_points_then_name() -> None:
    assert Score("zed", 10) < Score("amy", 11)
    assert Score("amy", 10) < Score("zed", 10)
    assert sorted([Score("b", 5), Score("a", 5), Score("c", 1)]) == [Score("c", 1), Score("a", 5), Score("b", 5)]


def test_add_score_keeps_list_sorted(tmp_path: Path) -> None:
    lb = Leaderboard(tmp_path / "scores.json")
    for score in (Score("mid", 50), Score("best", 10), Score("worst", 90), Score("alsomid", 50)):
        lb.add_score(score)
    assert lb.all_scores() == (Score("best", 10), Score("alsomid", 50), Score("mid", 50), Score("worst", 90))


def test_missing_file_starts_empty_and_is_written_on_close(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "scores.json"
    with Leaderboard(path) as lb:
        assert lb.all_scores() == ()
        lb.add_score(Score("Ada", 42))

    assert json.loads(path.read_text(encoding="utf-8")) == {"scores": [{"name": "Ada", "points": 42}]}
    assert Leaderboard(path).all_scores() == (Score("Ada", 42),)


def test_loaded_scores_are_sorted(tmp_path: Path) -> None:
    path = tmp_path / "scores.json"
    path.write_text(
        json.dumps({"scores": [{"name": "b", "points": 30}, {"name": "a", "points": 20}]}),
        encoding="utf-8",
    )
    assert [s.name for s in Leaderboard(path).all_scores()] == ["a", "b"]


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[]",
        '{"scores": {}}',
        '{"scores": [1]}',
        '{"scores": [{"name": "a", "points": "ten"}]}',
    ],
)
def test_malformed_file_is_rejected(tmp_path: Path, content: str) -> None:
    path = tmp_path / "scores.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(LeaderboardError):
        Leaderboard(path)


@pytest.fixture()
def unwritable(tmp_path: Path) -> Path:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    return blocker / "scores.json"


def test_save_failure_on_clean_exit_is_raised(unwritable: Path) -> None:
    with pytest.raises(LeaderboardError, match="Cannot write leaderboard"):
        with Leaderboard(unwritable) as lb:
            lb.add_score(Score("Ada", 1))


def test_save_failure_does_not_mask_the_active_error(unwritable: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    logged: List[str] = []
    monkeypatch.setattr(leaderboard.CFG, "log_error", lambda message, path=None: logged.append(message))

    with pytest.raises(RuntimeError, match="game crashed"):
        with Leaderboard(unwritable):
            raise RuntimeError("game crashed")

    assert len(logged) == 1
    assert logged[0].startswith("LeaderboardError: Cannot write leaderboard")

"""Theme sequence loading and PCM rendering."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
GAME_ROOT = REPO_ROOT / "game"
if str(GAME_ROOT) not in sys.path:
    sys.path.insert(0, str(GAME_ROOT))

from engine.theme import (
    Note,
    ThemeError,
    interleave,
    load_theme,
    note_frequency,
    parse_note,
    render_channel,
    validate_theme,
)
import settings as S


def _theme_data(**overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "version": 1,
        "tempo_bpm": 120,
        "loop_beats": 2,
        "channels": [
            {"id": 0, "name": "lead", "layer": "always_on", "waveform": "square", "notes": ["C4:1", "-:1"]},
            {"id": 4, "name": "hat", "layer": "optional", "waveform": "noise", "notes": ["x:0.5"]},
            {"id": 5, "name": "bell", "layer": "optional", "waveform": "sine", "notes": ["E5:2"]},
        ],
    }
    data.update(overrides)
    return data


def test_shipped_theme_layout() -> None:
    theme = load_theme(S.THEME_PATH)
    assert theme.always_on == [0, 1, 2]
    assert theme.optional == [3, 9]
    assert theme.loop_seconds == pytest.approx(8.0)


def test_note_frequency() -> None:
    assert note_frequency("A4") == pytest.approx(440.0)
    assert note_frequency("A5") == pytest.approx(880.0)
    assert note_frequency("C4") == pytest.approx(261.63, abs=0.01)
    assert note_frequency("Eb3") == pytest.approx(note_frequency("D#3"))
    with pytest.raises(ThemeError):
        note_frequency("H2")


def test_parse_note() -> None:
    assert parse_note("-:2") == Note(None, 2.0)
    assert parse_note("x:0.5") == Note(0.0, 0.5)
    assert parse_note("A4:1").frequency == pytest.approx(440.0)
    for bad in ("A4", "A4:zero", "A4:0", "A4:-1"):
        with pytest.raises(ThemeError):
            parse_note(bad)


def test_validate_builds_channels() -> None:
    theme = validate_theme(_theme_data())
    assert theme.always_on == [0]
    assert theme.optional == [4, 5]
    assert theme.channels[0].notes[1] == Note(None, 1.0)


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"version": 2}, "version"),
        ({"tempo_bpm": 0}, "tempo_bpm"),
        ({"loop_beats": "long"}, "loop_beats"),
        ({"channels": []}, "channels"),
        ({"channels": [{"id": 0, "layer": "optional", "notes": ["C4:1"]}]}, "always_on"),
        ({"channels": [{"id": 16, "notes": ["C4:1"]}]}, "integer id"),
        ({"channels": [{"id": 1, "notes": ["C4:1"]}, {"id": 1, "notes": ["C4:1"]}]}, "used twice"),
        ({"channels": [{"id": 1, "waveform": "kazoo", "notes": ["C4:1"]}]}, "waveform"),
        ({"channels": [{"id": 1, "layer": "sometimes", "notes": ["C4:1"]}]}, "layer"),
        ({"channels": [{"id": 1, "notes": []}]}, "notes"),
        ({"channels": [{"id": 0, "notes": ["C4:1"]}]}, "exactly 2 optional channels \\(got 0\\)"),
        (
            {"channels": [{"id": 0, "notes": ["C4:1"]}, {"id": 1, "layer": "optional", "notes": ["C4:1"]}]},
            "exactly 2 optional channels \\(got 1\\)",
        ),
        (
            {
                "channels": [{"id": 0, "notes": ["C4:1"]}]
                + [{"id": i, "layer": "optional", "notes": ["C4:1"]} for i in (1, 2, 3)]
            },
            "exactly 2 optional channels \\(got 3\\)",
        ),
    ],
)
def test_validate_rejects_bad_themes(overrides: Dict[str, Any], message: str) -> None:
    with pytest.raises(ThemeError, match=message):
        validate_theme(_theme_data(**overrides))


def test_load_theme_errors(tmp_path: Path) -> None:
    with pytest.raises(ThemeError):
        load_theme(tmp_path / "missing.yaml")

    broken = tmp_path / "broken.yaml"
    broken.write_text("channels: [", encoding="utf-8")
    with pytest.raises(ThemeError):
        load_theme(broken)


def test_render_channel_fills_one_loop() -> None:
    theme = validate_theme(_theme_data())
    lead = theme.channels[0]
    samples = render_channel(lead, theme, sample_rate=1000)

    assert len(samples) == 1000  # 2 beats at 120 bpm
    assert any(samples[:500])
    assert not any(samples[500:])  # second beat is a rest
    assert max(abs(s) for s in samples) <= 32767


def test_render_noise_is_deterministic() -> None:
    theme = validate_theme(_theme_data())
    hat = theme.channels[1]
    assert render_channel(hat, theme, 800) == render_channel(hat, theme, 800)


def test_interleave_duplicates_samples() -> None:
    theme = validate_theme(_theme_data())
    mono = render_channel(theme.channels[0], theme, 100)
    assert len(interleave(mono, 1)) == len(mono) * 2
    stereo = interleave(mono, 2)
    assert len(stereo) == len(mono) * 4
    assert stereo[:2] == stereo[2:4]

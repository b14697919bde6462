"""Procedural music theme: a YAML note sequence rendered into PCM loops.

A theme lists one entry per mixer channel.  Each channel plays a repeating
pattern of ``PITCH:BEATS`` tokens (``C4:1``, ``Eb3:0.5``; ``-`` rests and ``x``
is an unpitched hit for the noise waveform) until the loop length is filled.
"""

from __future__ import annotations

import math
import random
import re
from array import array
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

WAVEFORMS = ("sine", "square", "triangle", "saw", "noise")
ALWAYS_ON = "always_on"
OPTIONAL = "optional"
LAYERS = (ALWAYS_ON, OPTIONAL)
MAX_CHANNELS = 16
OPTIONAL_LAYERS = 2  # one per music transition state above 0
REST = "-"
HIT = "x"

_NOTE_RE = re.compile(r"^([A-Ga-g])([#b]?)(-?\d)$")
_SEMITONES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


class ThemeError(Exception):
    pass


@dataclass(frozen=True)
class Note:
    frequency: Optional[float]  # None rests, 0.0 is an unpitched hit
    beats: float


@dataclass(frozen=True)
class ThemeChannel:
    id: int
    name: str
    layer: str
    waveform: str
    notes: Tuple[Note, ...]
    gain: float = 1.0


@dataclass(frozen=True)
class Theme:
    name: str
    tempo_bpm: float
    loop_beats: float
    channels: Tuple[ThemeChannel, ...]

    @property
    def always_on(self) -> List[int]:
        return [ch.id for ch in self.channels if ch.layer == ALWAYS_ON]

    @property
    def optional(self) -> List[int]:
        return [ch.id for ch in self.channels if ch.layer == OPTIONAL]

    @property
    def seconds_per_beat(self) -> float:
        return 60.0 / self.tempo_bpm

    @property
    def loop_seconds(self) -> float:
        return self.loop_beats * self.seconds_per_beat


def note_frequency(pitch: str) -> float:
    """Equal-temperament frequency of a note name such as ``A4`` or ``Eb3``."""

    match = _NOTE_RE.match(pitch)
    if not match:
        raise ThemeError(f"Bad pitch {pitch!r}")
    letter, accidental, octave = match.groups()
    semitone = _SEMITONES[letter.upper()] + {"#": 1, "b": -1}.get(accidental, 0)
    midi = (int(octave) + 1) * 12 + semitone
    return 440.0 * 2 ** ((midi - 69) / 12)


def parse_note(token: str) -> Note:
    pitch, sep, beats_text = str(token).partition(":")
    if not sep:
        raise ThemeError(f"Note {token!r} must look like PITCH:BEATS")
    try:
        beats = float(beats_text)
    except ValueError:
        raise ThemeError(f"Note {token!r} has a bad length") from None
    if beats <= 0:
        raise ThemeError(f"Note {token!r} must last longer than 0 beats")

    pitch = pitch.strip()
    if pitch == REST:
        return Note(None, beats)
    if pitch.lower() == HIT:
        return Note(0.0, beats)
    return Note(note_frequency(pitch), beats)


def validate_theme(data: Dict[str, Any]) -> Theme:
    if not isinstance(data, dict):
        raise ThemeError("Theme must be a mapping.")
    if data.get("version") != 1:
        raise ThemeError('Theme "version" must be 1.')
    tempo = data.get("tempo_bpm")
    if not isinstance(tempo, (int, float)) or tempo <= 0:
        raise ThemeError('"tempo_bpm" must be a positive number.')
    loop_beats = data.get("loop_beats")
    if not isinstance(loop_beats, (int, float)) or loop_beats <= 0:
        raise ThemeError('"loop_beats" must be a positive number.')

    raw_channels = data.get("channels")
    if not isinstance(raw_channels, list) or not raw_channels:
        raise ThemeError('"channels" must be a non-empty list.')

    channels: List[ThemeChannel] = []
    seen: set[int] = set()
    for i, entry in enumerate(raw_channels):
        if not isinstance(entry, dict):
            raise ThemeError(f"Channel {i} must be a mapping.")
        channel_id = entry.get("id")
        if not isinstance(channel_id, int) or not 0 <= channel_id < MAX_CHANNELS:
            raise ThemeError(f"Channel {i} needs an integer id in 0-{MAX_CHANNELS - 1}.")
        if channel_id in seen:
            raise ThemeError(f"Channel id {channel_id} is used twice.")
        seen.add(channel_id)

        layer = entry.get("layer", ALWAYS_ON)
        if layer not in LAYERS:
            raise ThemeError(f"Channel {channel_id} layer must be one of {', '.join(LAYERS)}.")
        waveform = entry.get("waveform", "sine")
        if waveform not in WAVEFORMS:
            raise ThemeError(f"Channel {channel_id} waveform must be one of {', '.join(WAVEFORMS)}.")
        notes = entry.get("notes")
        if not isinstance(notes, list) or not notes:
            raise ThemeError(f"Channel {channel_id} needs a non-empty notes list.")
        gain = float(entry.get("gain", 1.0))

        channels.append(
            ThemeChannel(
                id=channel_id,
                name=str(entry.get("name", f"channel-{channel_id}")),
                layer=layer,
                waveform=waveform,
                notes=tuple(parse_note(token) for token in notes),
                gain=max(0.0, min(1.0, gain)),
            )
        )

    theme = Theme(
        name=str(data.get("name", "theme")),
        tempo_bpm=float(tempo),
        loop_beats=float(loop_beats),
        channels=tuple(channels),
    )
    if not theme.always_on:
        raise ThemeError("Theme needs at least one always_on channel.")
    if len(theme.optional) != OPTIONAL_LAYERS:
        raise ThemeError(f"Theme needs exactly {OPTIONAL_LAYERS} optional channels (got {len(theme.optional)}).")
    return theme


def load_theme(path: Path) -> Theme:
    try:
        with open(path, "r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp)
    except (OSError, yaml.YAMLError) as exc:
        raise ThemeError(f"Cannot read theme {path}: {exc}") from exc
    return validate_theme(data)


def _wave(waveform: str, phase: float, rng: random.Random) -> float:
    frac = phase % 1.0
    if waveform == "sine":
        return math.sin(2 * math.pi * frac)
    if waveform == "square":
        return 1.0 if frac < 0.5 else -1.0
    if waveform == "triangle":
        return 4.0 * abs(frac - 0.5) - 1.0
    if waveform == "saw":
        return 2.0 * frac - 1.0
    return rng.uniform(-1.0, 1.0)


def render_channel(
    channel: ThemeChannel,
    theme: Theme,
    sample_rate: int,
    amplitude: float = 0.25,
    seed: int = 0,
) -> array:
    """Render one loop of ``channel`` as mono signed 16-bit samples."""

    total = int(round(theme.loop_seconds * sample_rate))
    samples = array("h", [0]) * total
    rng = random.Random(seed + channel.id)
    attack = max(1, int(sample_rate * 0.005))
    peak = 32767 * amplitude * channel.gain

    pos = 0
    index = 0
    while pos < total:
        note = channel.notes[index % len(channel.notes)]
        index += 1
        length = min(total - pos, max(1, int(round(note.beats * theme.seconds_per_beat * sample_rate))))
        if note.frequency is not None:
            release = max(1, length // 5)
            for i in range(length):
                env = min(1.0, i / attack, (length - i) / release)
                if channel.waveform == "noise":
                    env *= math.exp(-i / (0.04 * sample_rate))
                value = _wave(channel.waveform, note.frequency * i / sample_rate, rng)
                samples[pos + i] = int(peak * env * value)
        pos += length
    return samples


def interleave(samples: array, channels: int) -> bytes:
    """Duplicate mono samples across ``channels`` output channels."""

    if channels <= 1:
        return samples.tobytes()
    return array("h", (s for s in samples for _ in range(channels))).tobytes()

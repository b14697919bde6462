"""Layered music playback with background cross-fades.

The theme plays on several mixer channels at once.  A few channels are always
audible; the optional ones are faded in as the robot gets closer to Desmond
(transition state 1) and while it carries him (state 2).  Fades run on a
single background worker so the console never waits for them; at most one
fade is in flight and every call that changes volumes waits for it first.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Condition, Event
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence

import pygame as pg

from .theme import Theme, interleave, render_channel

MAX_VOLUME = 100
FADE_STEPS = 100


class AudioUnavailableError(RuntimeError):
    """The mixer could not be opened."""


class AudioBackend(Protocol):
    def play(self) -> None: ...

    def halt(self) -> None: ...

    def is_playing(self) -> bool: ...

    def get_volume(self, channel: int) -> int: ...

    def set_volume(self, channel: int, volume: int) -> None: ...

    def close(self) -> None: ...


class SilentBackend:
    """Backend that only remembers volumes; used when audio is muted."""

    def __init__(self, channels: Iterable[int]) -> None:
        self._volumes: Dict[int, int] = {channel: 0 for channel in channels}
        self._playing = False
        self.closed = False

    def play(self) -> None:
        self._playing = True

    def halt(self) -> None:
        self._playing = False

    def is_playing(self) -> bool:
        return self._playing

    def get_volume(self, channel: int) -> int:
        return self._volumes.get(channel, 0)

    def set_volume(self, channel: int, volume: int) -> None:
        self._volumes[channel] = volume

    def close(self) -> None:
        self._playing = False
        self.closed = True


class MixerBackend:
    """Plays every theme channel as a looping ``pygame.mixer.Sound``."""

    def __init__(self, theme: Theme, frequency: int = 22050) -> None:
        try:
            if not pg.mixer.get_init():
                pg.mixer.init(frequency=frequency, size=-16, channels=2, buffer=512)
        except pg.error as exc:
            raise AudioUnavailableError(f"Cannot open the audio mixer: {exc}") from exc

        sample_rate, _fmt, out_channels = pg.mixer.get_init()
        pg.mixer.set_num_channels(max(pg.mixer.get_num_channels(), max(theme.always_on + theme.optional) + 1))

        self._channels: Dict[int, pg.mixer.Channel] = {}
        self._sounds: Dict[int, pg.mixer.Sound] = {}
        self._volumes: Dict[int, int] = {}
        for ch in theme.channels:
            pcm = interleave(render_channel(ch, theme, sample_rate), out_channels)
            self._sounds[ch.id] = pg.mixer.Sound(buffer=pcm)
            self._channels[ch.id] = pg.mixer.Channel(ch.id)
            self._volumes[ch.id] = 0

    def play(self) -> None:
        for channel_id, channel in self._channels.items():
            channel.set_volume(self._volumes[channel_id] / MAX_VOLUME)
            channel.play(self._sounds[channel_id], loops=-1)

    def halt(self) -> None:
        for channel in self._channels.values():
            channel.stop()

    def is_playing(self) -> bool:
        return any(channel.get_busy() for channel in self._channels.values())

    def get_volume(self, channel: int) -> int:
        return self._volumes.get(channel, 0)

    def set_volume(self, channel: int, volume: int) -> None:
        volume = max(0, min(MAX_VOLUME, volume))
        self._volumes[channel] = volume
        mixer_channel = self._channels.get(channel)
        if mixer_channel is not None:
            mixer_channel.set_volume(volume / MAX_VOLUME)

    def close(self) -> None:
        self.halt()
        self._sounds.clear()
        self._channels.clear()
        if pg.mixer.get_init():
            pg.mixer.quit()


class MusicEngine:
    """Schedules volume fades between music transition states.

    ``start``, ``stop`` and ``transition`` are serialised: each waits until no
    fade is in flight.  ``stop`` and ``transition`` return the ``Future`` of
    the fade they scheduled (or ``None`` when nothing had to change) without
    waiting for it to finish.
    """

    def __init__(
        self,
        backend: AudioBackend,
        always_on: Sequence[int],
        optional: Sequence[int],
        fadeout_ms: int = 500,
        transition_ms: int = 1000,
        nominal_volume: int = MAX_VOLUME,
    ) -> None:
        self._backend = backend
        self.always_on = list(always_on)
        self.optional = list(optional)
        self.fadeout_ms = fadeout_ms
        self.transition_ms = transition_ms
        self.nominal_volume = nominal_volume

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fader")
        self._slot = Condition()
        self._inflight: Optional[Future[None]] = None
        self._cancel = Event()
        self._closed = False
        self._state = 0

    @classmethod
    def from_theme(cls, theme: Theme, backend: AudioBackend, **kwargs: int) -> "MusicEngine":
        return cls(backend, theme.always_on, theme.optional, **kwargs)

    # ------------------------------------------------------------------ queries
    @property
    def transition_state(self) -> int:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def volumes(self) -> Dict[int, int]:
        return {ch: self._backend.get_volume(ch) for ch in self.always_on + self.optional}

    def is_fading(self) -> bool:
        with self._slot:
            return self._inflight is not None

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no fade is in flight; False if ``timeout`` ran out."""

        with self._slot:
            return self._slot.wait_for(self._slot_free, timeout)

    # ------------------------------------------------------------------ control
    def start(self) -> None:
        if self._closed:
            return
        with self._slot:
            self._slot.wait_for(self._slot_free)
            if self._closed:
                return
            for channel in self.optional:
                self._backend.set_volume(channel, 0)
            for channel in self.always_on:
                self._backend.set_volume(channel, self.nominal_volume)
            self._backend.play()
            self._state = 0

    def stop(self) -> Optional[Future[None]]:
        if self._closed or not self._backend.is_playing():
            return None
        with self._slot:
            self._slot.wait_for(self._slot_free)
            if self._closed:
                return None
            fade_out = list(self.always_on)
            fade_out += [ch for ch in self.optional if self._backend.get_volume(ch) != 0]
            return self._submit((), fade_out, self.fadeout_ms, self._backend.halt)

    def transition(self, state: int) -> Optional[Future[None]]:
        """Move to transition ``state``: optional channel ``k`` plays iff ``state >= k``."""

        if not 0 <= state <= len(self.optional):
            raise ValueError(f"Transition state must be between 0 and {len(self.optional)} (got {state})")
        if self._closed or state == self._state:
            return None

        with self._slot:
            self._slot.wait_for(self._slot_free)
            if self._closed or state == self._state:
                return None
            self._state = state

            fade_in: List[int] = []
            fade_out: List[int] = []
            for rank, channel in enumerate(self.optional, start=1):
                volume = self._backend.get_volume(channel)
                if state >= rank and volume != MAX_VOLUME:
                    fade_in.append(channel)
                elif state < rank and volume != 0:
                    fade_out.append(channel)

            if not fade_in and not fade_out:
                return None
            return self._submit(fade_in, fade_out, self.transition_ms, None)

    def cancel(self) -> None:
        """Cut the current fade short; its cleanup still runs."""

        self._cancel.set()

    def close(self) -> None:
        with self._slot:
            if self._closed:
                return
            self._closed = True
        self._cancel.set()
        self._executor.shutdown(wait=True)
        self._backend.close()

    def __enter__(self) -> "MusicEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ----------------------------------------------------------------- internals
    def _slot_free(self) -> bool:
        return self._inflight is None

    def _submit(
        self,
        fade_in: Sequence[int],
        fade_out: Sequence[int],
        duration_ms: int,
        cleanup: Callable[[], None] | None,
    ) -> Future[None]:
        # caller holds self._slot, so the worker cannot free it before we record it
        self._cancel.clear()
        future = self._executor.submit(self._fade, tuple(fade_in), tuple(fade_out), duration_ms, cleanup)
        self._inflight = future
        return future

    def _fade(
        self,
        fade_in: Sequence[int],
        fade_out: Sequence[int],
        duration_ms: int,
        cleanup: Callable[[], None] | None,
    ) -> None:
        interval = duration_ms / FADE_STEPS / 1000.0
        try:
            for volume in range(1, FADE_STEPS + 1):
                if self._cancel.wait(interval):
                    return
                for channel in fade_in:
                    self._backend.set_volume(channel, volume)
                for channel in fade_out:
                    self._backend.set_volume(channel, MAX_VOLUME - volume)
        finally:
            try:
                if cleanup is not None:
                    cleanup()
            finally:
                with self._slot:
                    self._inflight = None
                    self._slot.notify_all()

"""Procedural audio side channel.

Everything is synthesized into 16-bit mono PCM and handed to
``pygame.mixer``; no audio files ship with the package. When the mixer cannot
be initialised (no device, SDL dummy driver, disabled via config) every call
is a silent no-op so simulations never have to care.
"""

from __future__ import annotations

import logging
import math
from array import array
from dataclasses import dataclass
from enum import StrEnum

import pygame

from .core import SeededRng

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
_AMP = 32767
_FADE_S = 0.008
_RESERVED_TONE_CHANNELS = 2
# Continuous tones are rebuilt only when the pitch moves by more than this ratio.
_RETUNE_RATIO = 0.01
_TONE_LOOP_S = 0.25


class Waveform(StrEnum):
    SINE = "sine"
    SQUARE = "square"
    SAWTOOTH = "sawtooth"
    TRIANGLE = "triangle"
    NOISE = "noise"


@dataclass(frozen=True, slots=True)
class ToneSpec:
    freq_hz: float
    duration_s: float
    wave: Waveform = Waveform.SINE
    volume: float = 0.3
    delay_s: float = 0.0
    ramp_down: bool = True


def _tone(freq: float, dur: float, wave: Waveform = Waveform.SINE, vol: float = 0.3, delay: float = 0.0) -> ToneSpec:
    return ToneSpec(freq_hz=freq, duration_s=dur, wave=wave, volume=vol, delay_s=delay)


SFX: dict[str, tuple[ToneSpec, ...]] = {
    "click": (_tone(800, 0.05, Waveform.SQUARE, 0.1),),
    "success": (
        _tone(523, 0.1, vol=0.2),
        _tone(659, 0.1, vol=0.2, delay=0.1),
        _tone(784, 0.15, vol=0.25, delay=0.2),
    ),
    "correct": (_tone(880, 0.12, vol=0.2), _tone(1100, 0.15, vol=0.2, delay=0.08)),
    "fail": (
        _tone(300, 0.2, Waveform.SAWTOOTH, 0.15),
        _tone(200, 0.3, Waveform.SAWTOOTH, 0.12, delay=0.15),
    ),
    "incorrect": (
        _tone(250, 0.15, Waveform.SQUARE, 0.1),
        _tone(200, 0.2, Waveform.SQUARE, 0.08, delay=0.1),
    ),
    "launch": (_tone(0, 0.15, Waveform.NOISE, 0.2), _tone(150, 0.2, Waveform.SAWTOOTH, 0.15)),
    "collision": (_tone(0, 0.08, Waveform.NOISE, 0.3), _tone(200, 0.1, Waveform.TRIANGLE, 0.2)),
    "tick": (_tone(1000, 0.03, vol=0.08),),
    "powerup": tuple(_tone(400 + i * 100, 0.08, vol=0.15, delay=i * 0.05) for i in range(5)),
    "whoosh": (
        ToneSpec(freq_hz=400, duration_s=0.2, volume=0.1, ramp_down=False),
        _tone(200, 0.15, vol=0.05, delay=0.05),
    ),
    "drop": (_tone(600, 0.15, vol=0.15), _tone(300, 0.2, vol=0.1, delay=0.08)),
    "pop": (_tone(1200, 0.05, vol=0.15),),
}


def score_tones(points: int) -> tuple[ToneSpec, ...]:
    """Ascending arpeggio, one note per point (at most five)."""

    return tuple(_tone(440 + i * 110, 0.1, vol=0.2, delay=i * 0.08) for i in range(min(max(0, int(points)), 5)))


def _wave_sample(wave: Waveform, phase: float, rng: SeededRng) -> float:
    # ``phase`` is in cycles.
    if wave is Waveform.NOISE:
        return rng.uniform(-1.0, 1.0)
    frac = phase - math.floor(phase)
    if wave is Waveform.SQUARE:
        return 1.0 if frac < 0.5 else -1.0
    if wave is Waveform.SAWTOOTH:
        return 2.0 * frac - 1.0
    if wave is Waveform.TRIANGLE:
        return 4.0 * abs(frac - 0.5) - 1.0
    return math.sin(2.0 * math.pi * phase)


def render_tone(spec: ToneSpec, *, sample_rate: int = SAMPLE_RATE, rng: SeededRng | None = None) -> list[float]:
    """Render one tone to float samples in [-1, 1] with short fades at both ends.

    ``ramp_down`` adds an exponential decay to ~0.001 over the tone.
    """

    rng = rng if rng is not None else SeededRng(0)
    sample_count = max(1, int(sample_rate * spec.duration_s))
    fade_n = max(1, int(sample_rate * _FADE_S))
    decay = math.log(0.001) / sample_count if spec.ramp_down else 0.0
    out: list[float] = []
    for idx in range(sample_count):
        envelope = 1.0
        if idx < fade_n:
            envelope = idx / float(fade_n)
        tail = sample_count - idx - 1
        if tail < fade_n:
            envelope = min(envelope, tail / float(fade_n))
        if decay:
            envelope *= math.exp(decay * idx)
        phase = float(spec.freq_hz) * idx / float(sample_rate)
        out.append(_wave_sample(spec.wave, phase, rng) * spec.volume * max(0.0, envelope))
    return out


def mix_to_pcm(
    tones: tuple[ToneSpec, ...],
    *,
    sample_rate: int = SAMPLE_RATE,
    master: float = 1.0,
    rng: SeededRng | None = None,
) -> array[int]:
    """Mix delayed, possibly overlapping tones into one 16-bit buffer."""

    if not tones:
        return array("h")
    total = max(int(sample_rate * (t.delay_s + t.duration_s)) + 1 for t in tones)
    acc = [0.0] * total
    for tone in tones:
        offset = int(sample_rate * tone.delay_s)
        for i, value in enumerate(render_tone(tone, sample_rate=sample_rate, rng=rng)):
            if offset + i < total:
                acc[offset + i] += value
    out = array("h")
    for value in acc:
        out.append(int(max(-1.0, min(1.0, value * master)) * _AMP))
    return out


def render_loop_pcm(freq_hz: float, *, sample_rate: int = SAMPLE_RATE) -> array[int]:
    """Whole-cycle sine buffer that loops without a click."""

    freq = max(1.0, float(freq_hz))
    cycles = max(1, int(round(freq * _TONE_LOOP_S)))
    sample_count = max(1, int(round(sample_rate * cycles / freq)))
    out = array("h")
    for idx in range(sample_count):
        phase = 2.0 * math.pi * cycles * idx / sample_count
        out.append(int(math.sin(phase) * _AMP))
    return out


def init_mixer(sample_rate: int = SAMPLE_RATE) -> bool:
    """Initialise the mixer once; returns False when no audio device is usable."""

    try:
        if pygame.mixer.get_init() is None:
            pygame.mixer.init(frequency=sample_rate, size=-16, channels=1, buffer=512)
        pygame.mixer.set_num_channels(max(8, int(pygame.mixer.get_num_channels())))
        pygame.mixer.set_reserved(_RESERVED_TONE_CHANNELS)
    except Exception as exc:
        logger.debug("audio unavailable: %s", exc)
        return False
    return True


class SoundBoard:
    """One-shot sound effects and score arpeggios."""

    def __init__(
        self,
        *,
        enabled: bool = True,
        sample_rate: int = SAMPLE_RATE,
        master_volume: float = 0.3,
    ) -> None:
        self._sample_rate = int(sample_rate)
        self._master = max(0.0, min(1.0, float(master_volume)))
        self._muted = False
        self._cache: dict[str, pygame.mixer.Sound] = {}
        self._rng = SeededRng(0x50FD)
        self._available = bool(enabled) and init_mixer(self._sample_rate)

    @property
    def available(self) -> bool:
        return self._available

    @property
    def muted(self) -> bool:
        return self._muted

    def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)
        if self._muted:
            self.stop()

    def render_pcm(self, name: str) -> array[int]:
        return mix_to_pcm(SFX[name], sample_rate=self._sample_rate, master=self._master, rng=self._rng)

    def play_sfx(self, name: str) -> None:
        if name not in SFX:
            raise KeyError(f"unknown sound effect: {name!r}")
        if not self._available or self._muted:
            return
        sound = self._cache.get(name)
        try:
            if sound is None:
                sound = pygame.mixer.Sound(buffer=self.render_pcm(name).tobytes())
                self._cache[name] = sound
            sound.play()
        except Exception as exc:
            logger.debug("sfx %s failed: %s", name, exc)

    def play_score(self, points: int) -> None:
        tones = score_tones(points)
        if not tones or not self._available or self._muted:
            return
        key = f"score:{len(tones)}"
        sound = self._cache.get(key)
        try:
            if sound is None:
                pcm = mix_to_pcm(tones, sample_rate=self._sample_rate, master=self._master)
                sound = pygame.mixer.Sound(buffer=pcm.tobytes())
                self._cache[key] = sound
            sound.play()
        except Exception as exc:
            logger.debug("score arpeggio failed: %s", exc)

    def stop(self) -> None:
        if not self._available:
            return
        try:
            for sound in self._cache.values():
                sound.stop()
        except Exception as exc:
            logger.debug("stopping sfx failed: %s", exc)


class ToneChannel:
    """Continuous sine tone whose pitch and loudness follow a simulation.

    pygame cannot retune a playing buffer, so a whole-cycle loop is rebuilt
    whenever the pitch drifts past a small ratio; loudness is channel volume.
    """

    def __init__(
        self,
        index: int = 0,
        *,
        enabled: bool = True,
        sample_rate: int = SAMPLE_RATE,
        master_volume: float = 0.3,
    ) -> None:
        if not (0 <= index < _RESERVED_TONE_CHANNELS):
            raise ValueError(f"tone channel index must be in [0, {_RESERVED_TONE_CHANNELS})")
        self._index = int(index)
        self._sample_rate = int(sample_rate)
        self._master = max(0.0, min(1.0, float(master_volume)))
        self._frequency = 0.0
        self._gain = 0.0
        self._playing_freq: float | None = None
        self._channel: pygame.mixer.Channel | None = None
        self._available = bool(enabled) and init_mixer(self._sample_rate)
        if self._available:
            try:
                self._channel = pygame.mixer.Channel(self._index)
            except Exception as exc:
                logger.debug("tone channel %d unavailable: %s", self._index, exc)
                self._available = False

    @property
    def available(self) -> bool:
        return self._available

    @property
    def frequency(self) -> float:
        return self._frequency

    @property
    def gain(self) -> float:
        return self._gain

    @property
    def active(self) -> bool:
        return self._playing_freq is not None

    def set_frequency(self, freq_hz: float) -> None:
        if not math.isfinite(freq_hz) or freq_hz <= 0.0:
            return
        self._frequency = float(freq_hz)
        if not self._available or self._channel is None:
            return
        playing = self._playing_freq
        if playing is not None and abs(self._frequency / playing - 1.0) <= _RETUNE_RATIO:
            return
        try:
            sound = pygame.mixer.Sound(buffer=render_loop_pcm(self._frequency, sample_rate=self._sample_rate).tobytes())
            self._channel.play(sound, loops=-1)
            self._channel.set_volume(self._gain * self._master)
            self._playing_freq = self._frequency
        except Exception as exc:
            logger.debug("tone retune failed: %s", exc)

    def set_gain(self, gain: float) -> None:
        self._gain = max(0.0, min(1.0, float(gain))) if math.isfinite(gain) else 0.0
        if not self._available or self._channel is None:
            return
        try:
            self._channel.set_volume(self._gain * self._master)
        except Exception as exc:
            logger.debug("tone gain failed: %s", exc)

    def release(self) -> None:
        self._gain = 0.0
        self._playing_freq = None
        if not self._available or self._channel is None:
            return
        try:
            self._channel.stop()
        except Exception as exc:
            logger.debug("tone release failed: %s", exc)

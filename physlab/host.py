"""Mounts one simulation onto a canvas and drives it frame by frame.

Per frame the host applies, in order: physics ``step`` (skipped while
paused), particle/popup effects, audio sync, then ``draw``. Input events are
translated between frames and observed on the next tick.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pygame

from .audio import SoundBoard, ToneChannel
from .interaction import PointerAdapter
from .scheduler import AnimationScheduler
from .simulation import SimulationModule
from .surface import Canvas

logger = logging.getLogger(__name__)


class SimulationHost:
    def __init__(
        self,
        module: SimulationModule,
        canvas: Canvas,
        *,
        scheduler: AnimationScheduler | None = None,
        sound: SoundBoard | None = None,
        tones: Sequence[ToneChannel] = (),
        audio_enabled: bool = True,
    ) -> None:
        self._module = module
        self._canvas = canvas
        self._scheduler = scheduler if scheduler is not None else AnimationScheduler()
        self._sound = sound
        self._tones = tuple(tones)
        self._audio_enabled = bool(audio_enabled)
        self._paused = False
        self._mounted = False
        self._pointer = PointerAdapter(on_click=self._on_click, on_drag=self._on_drag)
        self._pointer.set_viewport(
            offset=(0.0, 0.0),
            display_size=(float(canvas.width), float(canvas.height)),
            surface_size=(float(canvas.width), float(canvas.height)),
        )

    @property
    def module(self) -> SimulationModule:
        return self._module

    @property
    def canvas(self) -> Canvas:
        return self._canvas

    @property
    def scheduler(self) -> AnimationScheduler:
        return self._scheduler

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def audio_enabled(self) -> bool:
        return self._audio_enabled

    def mount(self) -> None:
        if self._mounted:
            return
        self._mounted = True
        self._module.set_viewport(self._canvas.width, self._canvas.height)
        self._module.attach_sound(self._sound if self._audio_enabled else None)
        self._scheduler.start(self._on_frame)
        logger.info("mounted %s", self._module.key)

    def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False
        self._scheduler.stop()
        self._silence()
        if self._sound is not None:
            self._sound.stop()
        self._module.attach_sound(None)
        self._module.particles.clear()
        logger.info("unmounted %s", self._module.key)

    def frame(self, now_ms: float) -> float | None:
        return self._scheduler.tick(now_ms)

    def pause(self) -> None:
        """Freeze physics while the frame callback stays registered.

        Particles, popups and drawing keep running so the paused scene still
        animates its effects. Because the scheduler keeps ticking, its last
        timestamp stays fresh and resuming never applies the paused interval
        as one delta.
        """

        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def toggle_running(self) -> None:
        self._paused = not self._paused

    def set_audio(self, enabled: bool) -> None:
        self._audio_enabled = bool(enabled)
        self._module.attach_sound(self._sound if self._audio_enabled and self._mounted else None)
        if not self._audio_enabled:
            self._silence()

    def resize(self, width: float, height: float, display_size: tuple[float, float] | None = None) -> bool:
        if not self._canvas.resize(width, height):
            return False
        self._module.set_viewport(self._canvas.width, self._canvas.height)
        shown = display_size if display_size is not None else (float(width), float(height))
        self._pointer.set_viewport(
            offset=(0.0, 0.0),
            display_size=shown,
            surface_size=(float(self._canvas.width), float(self._canvas.height)),
        )
        return True

    def handle_event(self, event: pygame.event.Event) -> bool:
        if self._pointer.handle_event(event):
            return True
        if event.type != pygame.KEYDOWN:
            return False

        key = event.key
        if self._module.handle_key(key):
            return True
        if key == pygame.K_SPACE:
            self.toggle_running()
        elif key == pygame.K_r:
            self._module.reset()
        elif key == pygame.K_m:
            self._module.next_mode()
        elif key in (pygame.K_TAB, pygame.K_DOWN):
            self._module.select_param(1)
        elif key == pygame.K_UP:
            self._module.select_param(-1)
        elif key == pygame.K_LEFT:
            self._module.adjust_selected(-1)
        elif key == pygame.K_RIGHT:
            self._module.adjust_selected(1)
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self._module.submit()
        elif key == pygame.K_a:
            self.set_audio(not self._audio_enabled)
        else:
            return False
        return True

    def _on_click(self, x: float, y: float) -> None:
        self._module.handle_click(x, y)

    def _on_drag(self, x: float, y: float, dx: float, dy: float) -> None:
        self._module.handle_drag(x, y, dx, dy)

    def _on_frame(self, dt: float) -> None:
        if not self._paused:
            self._module.step(dt)
        self._module.update_effects(dt)
        self._sync_audio()
        self._module.draw(self._canvas)

    def _sync_audio(self) -> None:
        if not self._tones:
            return
        if self._paused or not self._audio_enabled:
            self._silence()
            return
        profile = self._module.audio_profile()
        for idx, tone in enumerate(self._tones):
            if idx < len(profile):
                request = profile[idx]
                tone.set_frequency(request.freq_hz)
                tone.set_gain(request.gain)
            elif tone.active:
                tone.release()

    def _silence(self) -> None:
        for tone in self._tones:
            tone.release()

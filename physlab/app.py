"""Pygame UI shell for physlab.

The main menu lists the simulations; choosing one pushes a screen that mounts
it on a :class:`SimulationHost`. Deterministic physics, scoring and RNG live in
the simulation modules; this file only owns the window, the screen stack and
the real clock.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .audio import SoundBoard, ToneChannel
from .clock import Clock, RealClock
from .config import EngineConfig
from .drawing import draw_text, fill_rect
from .heat_engine import HeatEngine
from .host import SimulationHost
from .hydrogen_atom import HydrogenAtom
from .kinematics import Kinematics
from .logging_config import setup_logging
from .oscillator import Oscillator
from .projectile import ProjectileChallenge
from .relativity import Relativity
from .scheduler import AnimationScheduler
from .simulation import MUTED_TEXT, PANEL_TEXT, SimulationBase
from .spinning_top import SpinningTop
from .standard_model import StandardModel
from .surface import Canvas
from .wave_interference import WaveInterference

logger = logging.getLogger(__name__)

SIMULATIONS: tuple[type[SimulationBase], ...] = (
    Oscillator,
    Kinematics,
    ProjectileChallenge,
    HeatEngine,
    WaveInterference,
    HydrogenAtom,
    SpinningTop,
    StandardModel,
    Relativity,
)

BACKGROUND = (15, 23, 42)
PANEL = (30, 41, 59)
HEADER = (51, 65, 85)
ACCENT = (56, 189, 248)
ACCENT_TEXT = (2, 6, 23)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]
    hint: str = ""


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def top(self) -> Screen | None:
        return self._screens[-1] if self._screens else None

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # The root menu stays; Esc there quits instead.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
        elif self._screens:
            self._screens[-1].handle_event(event)

    def render(self) -> None:
        if self._screens:
            self._screens[-1].render(self._surface)


class MenuScreen:
    """Simulation picker drawn on its own :class:`Canvas`."""

    def __init__(
        self,
        app: App,
        title: str,
        items: list[MenuItem],
        *,
        is_root: bool = False,
        size: tuple[int, int] = (960, 600),
        dpr: float = 1.0,
    ) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._canvas = Canvas(size[0], size[1], dpr=dpr)

    @property
    def selected(self) -> int:
        return self._selected

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN or not self._items:
            return
        if event.key in (pygame.K_UP, pygame.K_w):
            self._selected = (self._selected - 1) % len(self._items)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._selected = (self._selected + 1) % len(self._items)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._items[self._selected].action()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            if self._is_root:
                self._app.quit()
            else:
                self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        canvas = self._canvas
        canvas.resize(w, h)
        canvas.clear(BACKGROUND)

        margin = max(10.0, min(26.0, w / 34))
        fw, fh = w - margin * 2, h - margin * 2
        fill_rect(canvas, margin, margin, fw, fh, PANEL, radius=10)
        fill_rect(canvas, margin, margin, fw, fh, MUTED_TEXT, radius=10, width=1)
        header_h = max(34.0, min(52.0, h / 8))
        fill_rect(canvas, margin + 2, margin + 2, fw - 4, header_h, HEADER, radius=8)
        draw_text(canvas, self._title, w / 2, margin + 2 + header_h / 2, size=20, color=PANEL_TEXT, align="center", bold=True)

        top = margin + header_h + max(12.0, h / 40)
        bottom = margin + fh - max(36.0, h / 14)
        gap = 6.0
        count = max(1, len(self._items))
        row_h = max(24.0, min(40.0, (bottom - top - gap * (count - 1)) / count))
        for idx, item in enumerate(self._items):
            y = top + idx * (row_h + gap)
            active = idx == self._selected
            fill_rect(canvas, margin + 24, y, fw - 48, row_h, ACCENT if active else BACKGROUND, radius=6)
            color = ACCENT_TEXT if active else PANEL_TEXT
            draw_text(canvas, item.label, margin + 36, y + row_h / 2, size=14, color=color)
            if item.hint:
                hint_color = ACCENT_TEXT if active else MUTED_TEXT
                draw_text(canvas, item.hint, margin + fw - 36, y + row_h / 2, size=10, color=hint_color, align="right")

        footer = "Up/Down: Choose  |  Enter: Open  |  Esc: Back"
        draw_text(canvas, footer, w / 2, margin + fh - 16, size=10, color=MUTED_TEXT, align="center")
        canvas.present(surface)


class SimulationScreen:
    """Hosts one simulation until Esc unmounts it and pops back to the menu."""

    def __init__(
        self,
        app: App,
        module: SimulationBase,
        *,
        config: EngineConfig,
        clock: Clock,
        sound: SoundBoard | None = None,
        tones: tuple[ToneChannel, ...] = (),
    ) -> None:
        self._app = app
        self._clock = clock
        self._dpr = config.device_pixel_ratio
        w, h = config.window_size
        self._canvas = Canvas(w, h, dpr=self._dpr)
        self._host = SimulationHost(
            module,
            self._canvas,
            scheduler=AnimationScheduler(dt_cap=config.dt_cap_s),
            sound=sound,
            tones=tones,
            audio_enabled=config.audio_enabled,
        )
        self._host.mount()

    @property
    def host(self) -> SimulationHost:
        return self._host

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._host.unmount()
            self._app.pop()
            return
        if event.type == pygame.VIDEORESIZE:
            self._host.resize(event.w, event.h)
            return
        self._host.handle_event(event)

    def render(self, surface: pygame.Surface) -> None:
        size = surface.get_size()
        if (self._canvas.width, self._canvas.height) != size:
            self._host.resize(size[0], size[1], display_size=(float(size[0]), float(size[1])))
        self._host.frame(self._clock.now_ms())
        self._canvas.present(surface)


def _new_seed() -> int:
    return random.randint(1, 2**31 - 1)


def run(*, max_frames: int | None = None, event_injector: Callable[[int], None] | None = None) -> int:
    config = EngineConfig.from_env()
    setup_logging(config.log_level)

    pygame.init()
    pygame.display.set_caption("physlab")
    surface = pygame.display.set_mode(config.window_size, pygame.RESIZABLE)
    logger.info("window %dx%d, dpr %.2f, audio %s", *config.window_size, config.device_pixel_ratio, config.audio_enabled)

    frame_clock = pygame.time.Clock()
    real_clock = RealClock()

    sound = SoundBoard(
        enabled=config.audio_enabled,
        sample_rate=config.sample_rate,
        master_volume=config.master_volume,
    )
    tones = tuple(
        ToneChannel(i, enabled=config.audio_enabled, sample_rate=config.sample_rate, master_volume=config.master_volume)
        for i in range(2)
    )

    app = App(surface)

    def opener(factory: type[SimulationBase]) -> Callable[[], None]:
        def open_simulation() -> None:
            module = factory(seed=_new_seed(), popup_duration_s=config.popup_duration_s)
            app.push(SimulationScreen(app, module, config=config, clock=real_clock, sound=sound, tones=tones))

        return open_simulation

    items = [MenuItem(factory.title, opener(factory), f"{len(factory.modes)} modes") for factory in SIMULATIONS]
    items.append(MenuItem("Quit", app.quit))
    app.push(
        MenuScreen(app, "physlab", items, is_root=True, size=config.window_size, dpr=config.device_pixel_ratio)
    )

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)
            for event in pygame.event.get():
                app.handle_event(event)
            app.render()
            pygame.display.flip()
            frame += 1
            if max_frames is not None and frame >= max_frames:
                break
            frame_clock.tick(config.target_fps)
    finally:
        top = app.top
        if isinstance(top, SimulationScreen):
            top.host.unmount()
        pygame.quit()
    return 0

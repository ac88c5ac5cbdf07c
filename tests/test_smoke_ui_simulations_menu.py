from __future__ import annotations

import os


def _key(key: int) -> None:
    import pygame

    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": key, "unicode": ""}))


def test_ui_smoke_open_oscillator_pause_switch_mode_and_back() -> None:
    # Headless SDL for CI.
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

    import pygame

    from physlab.app import run

    def inject(frame: int) -> None:
        # Main Menu -> Oscillator, pause, resume, next mode, back to the menu
        if frame == 1:
            _key(pygame.K_RETURN)
        elif frame == 3:
            _key(pygame.K_SPACE)
        elif frame == 4:
            _key(pygame.K_SPACE)
        elif frame == 5:
            _key(pygame.K_m)
        elif frame == 6:
            _key(pygame.K_RIGHT)
        elif frame == 8:
            _key(pygame.K_ESCAPE)

    assert run(max_frames=12, event_injector=inject) == 0


def test_ui_smoke_walk_every_simulation() -> None:
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

    import pygame

    from physlab.app import SIMULATIONS, run

    # Each simulation: open on frame 3k+1, draw a frame, Esc back, then move down.
    def inject(frame: int) -> None:
        step, phase = divmod(frame, 3)
        if step >= len(SIMULATIONS):
            return
        if phase == 0:
            _key(pygame.K_RETURN)
        elif phase == 1:
            _key(pygame.K_ESCAPE)
        else:
            _key(pygame.K_DOWN)

    assert run(max_frames=len(SIMULATIONS) * 3 + 2, event_injector=inject) == 0


def test_ui_smoke_quit_item_stops_loop() -> None:
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

    import pygame

    from physlab.app import run

    def inject(frame: int) -> None:
        if frame == 0:
            # Wrap from the first item to "Quit".
            _key(pygame.K_UP)
            _key(pygame.K_RETURN)

    # Loop exits on its own well before the frame limit.
    assert run(max_frames=500, event_injector=inject) == 0


def test_ui_smoke_second_run_after_quit_draws_text() -> None:
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

    import pygame

    from physlab.app import run

    def inject(frame: int) -> None:
        if frame == 1:
            _key(pygame.K_RETURN)

    # Each run ends in pygame.quit(); the next one must build fresh fonts.
    assert run(max_frames=4, event_injector=inject) == 0
    assert run(max_frames=4, event_injector=inject) == 0

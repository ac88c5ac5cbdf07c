"""High-DPI raster surface for the simulations.

The backing ``pygame.Surface`` is allocated at physical pixel size
(logical size x device pixel ratio) while every draw call is expressed in
logical pixels; ``pt``/``px``/``rect`` do the scaling so strokes and text stay
crisp on dense displays.
"""

from __future__ import annotations

import logging
import math

import pygame

logger = logging.getLogger(__name__)

Color = tuple[int, int, int] | tuple[int, int, int, int]


def _valid_dimension(value: float) -> bool:
    return math.isfinite(value) and value > 0


class Canvas:
    def __init__(self, width: int, height: int, *, dpr: float = 1.0) -> None:
        if not (_valid_dimension(width) and _valid_dimension(height)):
            raise ValueError("canvas width and height must be > 0")
        if not _valid_dimension(dpr):
            raise ValueError("dpr must be > 0")
        self._width = int(width)
        self._height = int(height)
        self._dpr = float(dpr)
        self._surface = pygame.Surface(self.physical_size)
        self._fonts: dict[tuple[int, bool], pygame.font.Font] = {}

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def dpr(self) -> float:
        return self._dpr

    @property
    def surface(self) -> pygame.Surface:
        return self._surface

    @property
    def physical_size(self) -> tuple[int, int]:
        return (
            max(1, int(round(self._width * self._dpr))),
            max(1, int(round(self._height * self._dpr))),
        )

    def resize(self, width: float, height: float, dpr: float | None = None) -> bool:
        """Reallocate the backing store for a new container size.

        Returns False (and keeps the current surface) for zero, negative or
        non-finite sizes so a collapsed container never yields a NaN-sized
        surface.
        """

        new_dpr = self._dpr if dpr is None else dpr
        if not (_valid_dimension(width) and _valid_dimension(height) and _valid_dimension(new_dpr)):
            logger.debug("ignoring degenerate resize to %rx%r @%r", width, height, new_dpr)
            return False
        w = int(width)
        h = int(height)
        if w <= 0 or h <= 0:
            return False
        if (w, h, float(new_dpr)) == (self._width, self._height, self._dpr):
            return True
        self._width = w
        self._height = h
        self._dpr = float(new_dpr)
        self._surface = pygame.Surface(self.physical_size)
        return True

    def font(self, px: int, *, bold: bool = False) -> pygame.font.Font:
        """Return a default-face font at physical size ``px``, cached per canvas."""

        if not pygame.font.get_init():
            pygame.font.init()
            self._fonts.clear()
        key = (int(px), bool(bold))
        font = self._fonts.get(key)
        if font is None:
            font = pygame.font.Font(None, key[0])
            font.set_bold(key[1])
            self._fonts[key] = font
        return font

    def px(self, value: float) -> int:
        return int(round(value * self._dpr))

    def pt(self, x: float, y: float) -> tuple[int, int]:
        return (int(round(x * self._dpr)), int(round(y * self._dpr)))

    def rect(self, x: float, y: float, w: float, h: float) -> pygame.Rect:
        return pygame.Rect(self.px(x), self.px(y), max(0, self.px(w)), max(0, self.px(h)))

    def clear(self, color: Color = (0, 0, 0)) -> None:
        self._surface.fill(color)

    def present(self, target: pygame.Surface) -> None:
        """Blit the backing store onto the window surface."""

        size = target.get_size()
        if size == self._surface.get_size():
            target.blit(self._surface, (0, 0))
            return
        if size[0] <= 0 or size[1] <= 0:
            return
        target.blit(pygame.transform.smoothscale(self._surface, size), (0, 0))

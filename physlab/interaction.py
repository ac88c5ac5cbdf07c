"""Pointer input for simulation surfaces.

Raw pygame mouse events arrive in window pixels; simulations want logical
surface coordinates and discrete "click" or "drag" calls. A press followed by
a release without movement past a small slop is a click; anything else is a
drag.
"""

from __future__ import annotations

from collections.abc import Callable

import pygame

PointHandler = Callable[[float, float], None]
DragHandler = Callable[[float, float, float, float], None]

DRAG_SLOP_PX = 3.0


def surface_coords(
    pos: tuple[float, float],
    offset: tuple[float, float],
    display_size: tuple[float, float],
    surface_size: tuple[float, float],
) -> tuple[float, float]:
    """Map a window-space pointer to logical surface coordinates.

    ``offset`` is the widget's top-left in the window, ``display_size`` its
    on-screen size and ``surface_size`` its logical drawing size.
    """

    dw, dh = display_size
    sw, sh = surface_size
    sx = sw / dw if dw > 0 else 1.0
    sy = sh / dh if dh > 0 else 1.0
    return ((pos[0] - offset[0]) * sx, (pos[1] - offset[1]) * sy)


def is_point_in_rect(px: float, py: float, x: float, y: float, w: float, h: float) -> bool:
    return x <= px <= x + w and y <= py <= y + h


def is_point_in_circle(px: float, py: float, cx: float, cy: float, r: float) -> bool:
    dx = px - cx
    dy = py - cy
    return dx * dx + dy * dy <= r * r


class PointerAdapter:
    def __init__(
        self,
        *,
        on_click: PointHandler | None = None,
        on_drag_start: PointHandler | None = None,
        on_drag: DragHandler | None = None,
        on_drag_end: PointHandler | None = None,
    ) -> None:
        self._on_click = on_click
        self._on_drag_start = on_drag_start
        self._on_drag = on_drag
        self._on_drag_end = on_drag_end

        self._offset: tuple[float, float] = (0.0, 0.0)
        self._display_size: tuple[float, float] = (1.0, 1.0)
        self._surface_size: tuple[float, float] = (1.0, 1.0)

        self._down_at: tuple[float, float] | None = None
        self._last: tuple[float, float] | None = None
        self._dragging = False

    @property
    def dragging(self) -> bool:
        return self._dragging

    def set_viewport(
        self,
        *,
        offset: tuple[float, float],
        display_size: tuple[float, float],
        surface_size: tuple[float, float],
    ) -> None:
        self._offset = offset
        self._display_size = display_size
        self._surface_size = surface_size

    def _to_surface(self, pos: tuple[float, float]) -> tuple[float, float]:
        return surface_coords(pos, self._offset, self._display_size, self._surface_size)

    def handle_event(self, event: pygame.event.Event) -> bool:
        """Consume a mouse event; returns True when it was a pointer event."""

        if event.type == pygame.MOUSEBUTTONDOWN and getattr(event, "button", 1) == 1:
            x, y = self._to_surface(event.pos)
            self._down_at = (x, y)
            self._last = (x, y)
            self._dragging = False
            return True

        if event.type == pygame.MOUSEMOTION and self._down_at is not None:
            x, y = self._to_surface(event.pos)
            if not self._dragging:
                sx, sy = self._down_at
                if abs(x - sx) <= DRAG_SLOP_PX and abs(y - sy) <= DRAG_SLOP_PX:
                    return True
                self._dragging = True
                if self._on_drag_start is not None:
                    self._on_drag_start(sx, sy)
            lx, ly = self._last if self._last is not None else (x, y)
            self._last = (x, y)
            if self._on_drag is not None:
                self._on_drag(x, y, x - lx, y - ly)
            return True

        if event.type == pygame.MOUSEBUTTONUP and getattr(event, "button", 1) == 1:
            if self._down_at is None:
                return False
            x, y = self._to_surface(event.pos)
            was_dragging = self._dragging
            self._down_at = None
            self._last = None
            self._dragging = False
            if was_dragging:
                if self._on_drag_end is not None:
                    self._on_drag_end(x, y)
            elif self._on_click is not None:
                self._on_click(x, y)
            return True

        return False

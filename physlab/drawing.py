"""Shared drawing helpers for the simulations.

All coordinates are logical pixels on a :class:`~physlab.surface.Canvas`.
Translucent shapes are drawn onto a small ``SRCALPHA`` layer and blitted, since
``pygame.draw`` ignores per-call alpha on opaque surfaces.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import pygame

from .core import clamp01
from .surface import Canvas, Color


def hex_color(value: str) -> tuple[int, int, int]:
    """Parse ``#rrggbb`` (or ``rrggbb``) into an RGB tuple."""

    raw = value.strip().lstrip("#")
    if len(raw) == 3:
        raw = "".join(ch * 2 for ch in raw)
    if len(raw) != 6:
        raise ValueError(f"not a hex colour: {value!r}")
    return (int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16))


def mix(a: tuple[int, int, int], b: tuple[int, int, int], t: float) -> tuple[int, int, int]:
    t = clamp01(t)
    return (
        int(round(a[0] + (b[0] - a[0]) * t)),
        int(round(a[1] + (b[1] - a[1]) * t)),
        int(round(a[2] + (b[2] - a[2]) * t)),
    )


def get_font(canvas: Canvas, size: float, *, bold: bool = False) -> pygame.font.Font:
    # pygame's default font renders ~0.7x the requested size in cap height.
    return canvas.font(max(6, canvas.px(size * 1.35)), bold=bold)


def _rgb(color: Color) -> tuple[int, int, int]:
    return (int(color[0]), int(color[1]), int(color[2]))


def _alpha_of(color: Color, alpha: float) -> int:
    base = color[3] / 255.0 if len(color) == 4 else 1.0
    return int(round(255 * clamp01(base * alpha)))


def draw_text(
    canvas: Canvas,
    text: str,
    x: float,
    y: float,
    *,
    size: float = 11,
    color: Color = (255, 255, 255),
    align: str = "left",
    bold: bool = False,
    alpha: float = 1.0,
) -> None:
    """Draw ``text`` with its baseline-ish top at ``y``; ``align`` anchors ``x``."""

    if not text:
        return
    font = get_font(canvas, size, bold=bold)
    image = font.render(text, True, _rgb(color))
    a = _alpha_of(color, alpha)
    if a < 255:
        image.set_alpha(a)
    px, py = canvas.pt(x, y)
    if align == "center":
        px -= image.get_width() // 2
    elif align == "right":
        px -= image.get_width()
    canvas.surface.blit(image, (px, py - image.get_height() // 2))


def fill_rect(
    canvas: Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    color: Color,
    *,
    radius: float = 0,
    alpha: float = 1.0,
    width: float = 0,
) -> None:
    rect = canvas.rect(x, y, w, h)
    if rect.w <= 0 or rect.h <= 0:
        return
    a = _alpha_of(color, alpha)
    border = canvas.px(width) if width else 0
    r = canvas.px(radius)
    if a >= 255:
        pygame.draw.rect(canvas.surface, _rgb(color), rect, border, border_radius=r)
        return
    if a <= 0:
        return
    layer = pygame.Surface(rect.size, pygame.SRCALPHA)
    pygame.draw.rect(layer, (*_rgb(color), a), layer.get_rect(), border, border_radius=r)
    canvas.surface.blit(layer, rect.topleft)


def draw_circle(
    canvas: Canvas,
    x: float,
    y: float,
    radius: float,
    color: Color,
    *,
    alpha: float = 1.0,
    width: float = 0,
) -> None:
    r = canvas.px(radius)
    if r <= 0:
        return
    a = _alpha_of(color, alpha)
    cx, cy = canvas.pt(x, y)
    border = canvas.px(width) if width else 0
    if a >= 255:
        pygame.draw.circle(canvas.surface, _rgb(color), (cx, cy), r, border)
        return
    if a <= 0:
        return
    layer = pygame.Surface((r * 2 + 2, r * 2 + 2), pygame.SRCALPHA)
    pygame.draw.circle(layer, (*_rgb(color), a), (r + 1, r + 1), r, border)
    canvas.surface.blit(layer, (cx - r - 1, cy - r - 1))


def draw_glow(canvas: Canvas, x: float, y: float, radius: float, color: Color, *, strength: float = 0.5) -> None:
    """Cheap radial glow: concentric translucent discs."""

    steps = 5
    for i in range(steps, 0, -1):
        frac = i / steps
        draw_circle(canvas, x, y, radius * frac, color, alpha=strength * (1.0 - frac) * 0.6 + 0.04)


def draw_ellipse(
    canvas: Canvas,
    cx: float,
    cy: float,
    rx: float,
    ry: float,
    color: Color,
    *,
    width: float = 0,
    alpha: float = 1.0,
) -> None:
    rect = canvas.rect(cx - rx, cy - ry, rx * 2, ry * 2)
    if rect.w <= 0 or rect.h <= 0:
        return
    a = _alpha_of(color, alpha)
    border = canvas.px(width) if width else 0
    if a >= 255:
        pygame.draw.ellipse(canvas.surface, _rgb(color), rect, border)
        return
    layer = pygame.Surface(rect.size, pygame.SRCALPHA)
    pygame.draw.ellipse(layer, (*_rgb(color), a), layer.get_rect(), border)
    canvas.surface.blit(layer, rect.topleft)


def draw_line(
    canvas: Canvas,
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    color: Color,
    *,
    width: float = 1,
    dashed: bool = False,
    dash: float = 4,
) -> None:
    if not dashed:
        pygame.draw.line(canvas.surface, _rgb(color), canvas.pt(x1, y1), canvas.pt(x2, y2), max(1, canvas.px(width)))
        return
    length = math.hypot(x2 - x1, y2 - y1)
    if length <= 0.0:
        return
    ux = (x2 - x1) / length
    uy = (y2 - y1) / length
    pos = 0.0
    while pos < length:
        end = min(length, pos + dash)
        pygame.draw.line(
            canvas.surface,
            _rgb(color),
            canvas.pt(x1 + ux * pos, y1 + uy * pos),
            canvas.pt(x1 + ux * end, y1 + uy * end),
            max(1, canvas.px(width)),
        )
        pos += dash * 2


def draw_polyline(
    canvas: Canvas,
    points: Sequence[tuple[float, float]],
    color: Color,
    *,
    width: float = 2,
    closed: bool = False,
) -> None:
    if len(points) < 2:
        return
    scaled = [canvas.pt(x, y) for x, y in points]
    pygame.draw.lines(canvas.surface, _rgb(color), closed, scaled, max(1, canvas.px(width)))


def fill_polygon(canvas: Canvas, points: Sequence[tuple[float, float]], color: Color, *, alpha: float = 1.0) -> None:
    if len(points) < 3:
        return
    scaled = [canvas.pt(x, y) for x, y in points]
    a = _alpha_of(color, alpha)
    if a >= 255:
        pygame.draw.polygon(canvas.surface, _rgb(color), scaled)
        return
    if a <= 0:
        return
    min_x = min(p[0] for p in scaled)
    min_y = min(p[1] for p in scaled)
    w = max(p[0] for p in scaled) - min_x + 1
    h = max(p[1] for p in scaled) - min_y + 1
    layer = pygame.Surface((w, h), pygame.SRCALPHA)
    pygame.draw.polygon(layer, (*_rgb(color), a), [(px - min_x, py - min_y) for px, py in scaled])
    canvas.surface.blit(layer, (min_x, min_y))


def draw_arrow(
    canvas: Canvas,
    x: float,
    y: float,
    dx: float,
    dy: float,
    color: Color,
    *,
    line_width: float = 2,
    head_size: float | None = None,
    dashed: bool = False,
    label: str | None = None,
) -> None:
    """Draw an arrow from ``(x, y)`` along ``(dx, dy)``; shorter than 1px is skipped."""

    length = math.hypot(dx, dy)
    if length < 1.0:
        return
    head = min(12.0, length * 0.3) if head_size is None else head_size

    draw_line(canvas, x, y, x + dx, y + dy, color, width=line_width, dashed=dashed)

    nx = dx / length
    ny = dy / length
    tip = (x + dx, y + dy)
    left = (tip[0] - nx * head - ny * head * 0.4, tip[1] - ny * head + nx * head * 0.4)
    right = (tip[0] - nx * head + ny * head * 0.4, tip[1] - ny * head - nx * head * 0.4)
    fill_polygon(canvas, (tip, left, right), color)

    if label:
        draw_text(canvas, label, x + dx / 2, y + dy / 2 - 8, size=11, color=color, align="center")


@dataclass(frozen=True, slots=True)
class InfoRow:
    label: str
    value: str
    color: Color = (255, 255, 255)


def draw_info_panel(
    canvas: Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    title: str,
    rows: Sequence[InfoRow],
) -> None:
    fill_rect(canvas, x, y, w, h, (0, 0, 0), radius=8, alpha=0.6)
    fill_rect(canvas, x, y, w, h, (255, 255, 255), radius=8, alpha=0.1, width=1)

    ty = y + 14
    draw_text(canvas, title, x + 10, ty, size=11, color=(255, 255, 255), alpha=0.7, bold=True)
    ty += 16
    for row in rows:
        draw_text(canvas, row.label, x + 10, ty, size=11, color=(255, 255, 255), alpha=0.5)
        draw_text(canvas, row.value, x + w - 10, ty, size=11, color=row.color, align="right")
        ty += 15


def draw_meter(
    canvas: Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    value: float,
    max_value: float,
    color: Color,
    label: str | None = None,
) -> None:
    """Horizontal bar meter; ``value / max_value`` is clamped to [0, 1]."""

    fill_rect(canvas, x, y, w, h, (255, 255, 255), radius=h / 2, alpha=0.1)
    frac = 0.0 if max_value <= 0 else clamp01(value / max_value)
    fill_w = frac * w
    if fill_w > 0:
        fill_rect(canvas, x, y, fill_w, h, color, radius=h / 2)
    if label:
        draw_text(canvas, label, x + w / 2, y + h / 2, size=10, color=(255, 255, 255), align="center")


def draw_target(
    canvas: Canvas,
    x: float,
    y: float,
    r: float,
    color: Color = (239, 68, 68),
    pulse: float | None = None,
) -> None:
    """Crosshair target marker; ``pulse`` in [0, 1) breathes the radius by 15%."""

    factor = 1.0 if pulse is None else 1.0 + math.sin(pulse * math.pi * 2) * 0.15
    pr = r * factor

    draw_circle(canvas, x, y, pr, color, width=2)
    draw_circle(canvas, x, y, pr * 0.5, color, width=2)
    ext = pr * 1.3
    draw_line(canvas, x - ext, y, x - pr, y, color, width=2)
    draw_line(canvas, x + pr, y, x + ext, y, color, width=2)
    draw_line(canvas, x, y - ext, x, y - pr, color, width=2)
    draw_line(canvas, x, y + pr, x, y + ext, color, width=2)
    draw_circle(canvas, x, y, 2, color)


def draw_star(canvas: Canvas, x: float, y: float, r: float, color: Color, *, alpha: float = 1.0) -> None:
    points: list[tuple[float, float]] = []
    for i in range(5):
        angle = (i * 4 * math.pi) / 5 - math.pi / 2
        points.append((x + math.cos(angle) * r, y + math.sin(angle) * r))
    fill_polygon(canvas, points, color, alpha=alpha)


def wavelength_to_rgb(wavelength_nm: float) -> tuple[int, int, int]:
    """Approximate visible colour of light; UV and IR map to violet/deep red greys."""

    wl = float(wavelength_nm)
    if wl < 380.0:
        return (150, 110, 220)
    if wl > 750.0:
        return (150, 60, 60)
    if wl < 440.0:
        r, g, b = -(wl - 440.0) / 60.0, 0.0, 1.0
    elif wl < 490.0:
        r, g, b = 0.0, (wl - 440.0) / 50.0, 1.0
    elif wl < 510.0:
        r, g, b = 0.0, 1.0, -(wl - 510.0) / 20.0
    elif wl < 580.0:
        r, g, b = (wl - 510.0) / 70.0, 1.0, 0.0
    elif wl < 645.0:
        r, g, b = 1.0, -(wl - 645.0) / 65.0, 0.0
    else:
        r, g, b = 1.0, 0.0, 0.0
    return (int(r * 255), int(g * 255), int(b * 255))

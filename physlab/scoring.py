"""Challenge scoring: accuracy tiers, the challenge reducer, popups.

``update_challenge_state`` is a pure reducer over a frozen
:class:`ChallengeState`; simulations keep the latest value and replace it on
every graded attempt.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import StrEnum

from .drawing import draw_text, fill_rect, hex_color
from .surface import Canvas

logger = logging.getLogger(__name__)

POPUP_DURATION_S = 1.5
_POPUP_RISE_PX_PER_S = 60.0
_TOLERANCE_EPS = 1e-9


class ScoreTier(StrEnum):
    PERFECT = "perfect"
    GREAT = "great"
    GOOD = "good"
    CLOSE = "close"
    MISS = "miss"


@dataclass(frozen=True, slots=True)
class AccuracyResult:
    points: int
    tier: ScoreTier
    label: str


@dataclass(frozen=True, slots=True)
class ChallengeState:
    active: bool = False
    description: str = ""
    score: int = 0
    attempts: int = 0
    streak: int = 0
    best_streak: int = 0
    last_result: AccuracyResult | None = None

    @property
    def accuracy_pct(self) -> int:
        if self.attempts <= 0:
            return 0
        return int(round(self.score / (self.attempts * 3) * 100))


@dataclass(frozen=True, slots=True)
class ScorePopup:
    text: str
    points: int
    x: float
    y: float
    start_time_s: float


# (upper bound on normalized error, points, tier, label)
_TIERS: tuple[tuple[float, int, ScoreTier, str], ...] = (
    (0.05, 3, ScoreTier.PERFECT, "Perfect!"),
    (0.15, 2, ScoreTier.GREAT, "Great!"),
    (0.30, 2, ScoreTier.GOOD, "Good!"),
    (0.60, 1, ScoreTier.CLOSE, "Close!"),
)
_MISS = AccuracyResult(points=0, tier=ScoreTier.MISS, label="Try Again")

_TIER_COLORS: dict[ScoreTier, str] = {
    ScoreTier.PERFECT: "#22c55e",
    ScoreTier.GREAT: "#3b82f6",
    ScoreTier.GOOD: "#60a5fa",
    ScoreTier.CLOSE: "#f59e0b",
    ScoreTier.MISS: "#ef4444",
}


def calculate_accuracy(value: float, target: float, tolerance: float) -> AccuracyResult:
    """Grade ``value`` against ``target`` by error normalized to ``tolerance``."""

    if not (math.isfinite(value) and math.isfinite(target)):
        return _MISS
    err = abs(value - target) / max(abs(tolerance), _TOLERANCE_EPS)
    for bound, points, tier, label in _TIERS:
        if err < bound:
            return AccuracyResult(points=points, tier=tier, label=label)
    return _MISS


def tier_color(tier: ScoreTier) -> tuple[int, int, int]:
    return hex_color(_TIER_COLORS[tier])


def points_color(points: int) -> tuple[int, int, int]:
    if points >= 3:
        return tier_color(ScoreTier.PERFECT)
    if points >= 2:
        return tier_color(ScoreTier.GREAT)
    if points >= 1:
        return tier_color(ScoreTier.CLOSE)
    return tier_color(ScoreTier.MISS)


def create_challenge_state() -> ChallengeState:
    return ChallengeState()


def enter_challenge(description: str) -> ChallengeState:
    return ChallengeState(active=True, description=description)


def exit_challenge(state: ChallengeState) -> ChallengeState:
    return replace(state, active=False)


def update_challenge_state(state: ChallengeState, result: AccuracyResult) -> ChallengeState:
    streak = state.streak + 1 if result.points > 0 else 0
    new_state = replace(
        state,
        attempts=state.attempts + 1,
        score=state.score + result.points,
        streak=streak,
        best_streak=max(state.best_streak, streak),
        last_result=result,
    )
    logger.debug(
        "challenge attempt %d graded %s (+%d, streak %d)",
        new_state.attempts,
        result.tier.value,
        result.points,
        streak,
    )
    return new_state


def popup_alive(popup: ScorePopup, now_s: float, duration_s: float = POPUP_DURATION_S) -> bool:
    return (now_s - popup.start_time_s) < duration_s


def prune_popups(
    popups: Iterable[ScorePopup], now_s: float, duration_s: float = POPUP_DURATION_S
) -> list[ScorePopup]:
    return [p for p in popups if popup_alive(p, now_s, duration_s)]


def render_score_popup(
    canvas: Canvas, popup: ScorePopup, now_s: float, duration_s: float = POPUP_DURATION_S
) -> bool:
    """Draw a rising, fading popup; returns False once it has expired."""

    elapsed = now_s - popup.start_time_s
    if elapsed >= duration_s:
        return False
    elapsed = max(0.0, elapsed)

    alpha = 1.0 - elapsed / duration_s
    y = popup.y - elapsed * _POPUP_RISE_PX_PER_S
    scale = 1.0 + math.sin(elapsed * math.pi) * 0.3
    color = points_color(popup.points)

    draw_text(canvas, popup.text, popup.x, y, size=18 * scale, color=color, align="center", bold=True, alpha=alpha)
    if popup.points > 0:
        draw_text(
            canvas,
            f"+{popup.points}",
            popup.x,
            y + 22,
            size=14 * scale,
            color=color,
            align="center",
            bold=True,
            alpha=alpha,
        )
    return True


def render_scoreboard(
    canvas: Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    state: ChallengeState,
) -> None:
    fill_rect(canvas, x, y, w, h, (0, 0, 0), radius=8, alpha=0.7)
    fill_rect(canvas, x, y, w, h, (245, 158, 11), radius=8, alpha=0.4, width=1)

    draw_text(canvas, "CHALLENGE", x + w / 2, y + 14, size=10, color=(245, 158, 11), align="center", bold=True)
    draw_text(canvas, str(state.score), x + w / 2, y + 36, size=22, color=(255, 255, 255), align="center", bold=True)

    stats = (
        f"{state.attempts} tries  |  {state.accuracy_pct}%"
        if state.streak <= 1
        else f"{state.attempts} tries  |  {state.streak}x streak"
    )
    draw_text(canvas, stats, x + w / 2, y + h - 12, size=10, color=(255, 255, 255), align="center", alpha=0.6)

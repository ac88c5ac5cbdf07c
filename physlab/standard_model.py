"""Standard Model explorer with identification, decay and diagram games.

Nothing here evolves in time; the module only reacts to input and keeps its
particle effects and popups animating.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum

import pygame

from .drawing import (
    draw_circle,
    draw_line,
    draw_polyline,
    draw_text,
    fill_polygon,
    fill_rect,
    hex_color,
)
from .interaction import is_point_in_circle, is_point_in_rect
from .scoring import AccuracyResult, ScoreTier
from .simulation import KEY_DIGITS, MUTED_TEXT, PANEL_TEXT, SimulationBase
from .surface import Canvas

MAX_VERTICES = 8
QUIZ_OPTIONS = 4
CORRECT_POINTS = 3
_VERTEX_HIT_PX = 15.0


class Force(StrEnum):
    STRONG = "strong"
    WEAK = "weak"
    ELECTROMAGNETIC = "electromagnetic"
    GRAVITY = "gravity"
    HIGGS = "higgs"


class ParticleKind(StrEnum):
    QUARK = "quark"
    LEPTON = "lepton"
    BOSON = "boson"


class LineKind(StrEnum):
    FERMION = "fermion"
    BOSON = "boson"
    SCALAR = "scalar"


class StandardModelMode(StrEnum):
    EXPLORE = "explore"
    IDENTIFY = "identify"
    DECAY = "decay"
    FEYNMAN = "feynman"


@dataclass(frozen=True, slots=True)
class ParticleInfo:
    name: str
    symbol: str
    mass: str
    charge: str
    spin: str
    kind: ParticleKind
    generation: int | None
    color: str
    row: int
    col: int


@dataclass(frozen=True, slots=True)
class DecayMode:
    parent: str
    products: tuple[str, ...]
    description: str


@dataclass(slots=True)
class Quiz:
    answer: ParticleInfo
    options: tuple[ParticleInfo, ...]
    choice: int | None = None

    @property
    def revealed(self) -> bool:
        return self.choice is not None


@dataclass(slots=True)
class DecayQuestion:
    decay: DecayMode
    options: tuple[tuple[str, ...], ...]
    choice: int | None = None

    @property
    def revealed(self) -> bool:
        return self.choice is not None

    @property
    def correct_index(self) -> int:
        key = sorted(self.decay.products)
        return next(i for i, opt in enumerate(self.options) if sorted(opt) == key)


@dataclass(frozen=True, slots=True)
class FeynmanLine:
    start: int
    end: int
    kind: LineKind
    label: str


@dataclass(slots=True)
class FeynmanDiagram:
    vertices: list[tuple[float, float]] = field(default_factory=list)
    lines: list[FeynmanLine] = field(default_factory=list)

    def clear(self) -> None:
        self.vertices.clear()
        self.lines.clear()


_Q = ParticleKind.QUARK
_L = ParticleKind.LEPTON
_B = ParticleKind.BOSON

PARTICLES: tuple[ParticleInfo, ...] = (
    ParticleInfo("Up", "u", "2.2 MeV", "+2/3", "1/2", _Q, 1, "#ef4444", 0, 0),
    ParticleInfo("Down", "d", "4.7 MeV", "-1/3", "1/2", _Q, 1, "#ef4444", 1, 0),
    ParticleInfo("Charm", "c", "1.28 GeV", "+2/3", "1/2", _Q, 2, "#f97316", 0, 1),
    ParticleInfo("Strange", "s", "96 MeV", "-1/3", "1/2", _Q, 2, "#f97316", 1, 1),
    ParticleInfo("Top", "t", "173 GeV", "+2/3", "1/2", _Q, 3, "#f59e0b", 0, 2),
    ParticleInfo("Bottom", "b", "4.18 GeV", "-1/3", "1/2", _Q, 3, "#f59e0b", 1, 2),
    ParticleInfo("Electron", "e", "0.511 MeV", "-1", "1/2", _L, 1, "#22c55e", 2, 0),
    ParticleInfo("Electron Neutrino", "νe", "< 2 eV", "0", "1/2", _L, 1, "#22c55e", 3, 0),
    ParticleInfo("Muon", "μ", "106 MeV", "-1", "1/2", _L, 2, "#10b981", 2, 1),
    ParticleInfo("Muon Neutrino", "νμ", "< 0.19 MeV", "0", "1/2", _L, 2, "#10b981", 3, 1),
    ParticleInfo("Tau", "τ", "1.78 GeV", "-1", "1/2", _L, 3, "#059669", 2, 2),
    ParticleInfo("Tau Neutrino", "ντ", "< 18.2 MeV", "0", "1/2", _L, 3, "#059669", 3, 2),
    ParticleInfo("Gluon", "g", "0", "0", "1", _B, None, "#a855f7", 0, 3),
    ParticleInfo("Photon", "γ", "0", "0", "1", _B, None, "#8b5cf6", 1, 3),
    ParticleInfo("Z Boson", "Z", "91.2 GeV", "0", "1", _B, None, "#7c3aed", 2, 3),
    ParticleInfo("W Boson", "W", "80.4 GeV", "±1", "1", _B, None, "#6d28d9", 3, 3),
    ParticleInfo("Higgs", "H", "125 GeV", "0", "0", _B, None, "#3b82f6", 0, 4),
)

BY_SYMBOL: dict[str, ParticleInfo] = {p.symbol: p for p in PARTICLES}

_QUARK_FORCES = (Force.STRONG, Force.WEAK, Force.ELECTROMAGNETIC, Force.GRAVITY, Force.HIGGS)
_CHARGED_LEPTON_FORCES = (Force.WEAK, Force.ELECTROMAGNETIC, Force.GRAVITY, Force.HIGGS)
_NEUTRINO_FORCES = (Force.WEAK, Force.GRAVITY)

INTERACTIONS: dict[str, tuple[Force, ...]] = {
    "u": _QUARK_FORCES,
    "d": _QUARK_FORCES,
    "c": _QUARK_FORCES,
    "s": _QUARK_FORCES,
    "t": _QUARK_FORCES,
    "b": _QUARK_FORCES,
    "e": _CHARGED_LEPTON_FORCES,
    "νe": _NEUTRINO_FORCES,
    "μ": _CHARGED_LEPTON_FORCES,
    "νμ": _NEUTRINO_FORCES,
    "τ": _CHARGED_LEPTON_FORCES,
    "ντ": _NEUTRINO_FORCES,
    "g": (Force.STRONG,),
    "γ": (Force.ELECTROMAGNETIC,),
    "Z": (Force.WEAK,),
    "W": (Force.WEAK, Force.ELECTROMAGNETIC),
    "H": (Force.HIGGS,),
}

FORCE_COLORS: dict[Force, str] = {
    Force.STRONG: "#ef4444",
    Force.WEAK: "#a855f7",
    Force.ELECTROMAGNETIC: "#3b82f6",
    Force.GRAVITY: "#f59e0b",
    Force.HIGGS: "#06b6d4",
}

DECAYS: tuple[DecayMode, ...] = (
    DecayMode("W", ("e", "νe"), "W- -> e- + anti-νe"),
    DecayMode("W", ("μ", "νμ"), "W- -> μ- + anti-νμ"),
    DecayMode("Z", ("e", "e"), "Z -> e+ + e-"),
    DecayMode("Z", ("μ", "μ"), "Z -> μ+ + μ-"),
    DecayMode("H", ("b", "b"), "H -> b + anti-b"),
    DecayMode("H", ("γ", "γ"), "H -> γ + γ"),
    DecayMode("H", ("W", "W"), "H -> W+ + W-"),
    DecayMode("H", ("Z", "Z"), "H -> Z + Z"),
    DecayMode("t", ("W", "b"), "t -> W+ + b"),
    DecayMode("τ", ("μ", "νμ", "ντ"), "τ- -> μ- + anti-νμ + ντ"),
)

_LINE_LABELS: dict[LineKind, str] = {
    LineKind.FERMION: "f",
    LineKind.BOSON: "γ/W/Z/g",
    LineKind.SCALAR: "H",
}
_LINE_COLORS: dict[LineKind, str] = {
    LineKind.FERMION: "#22c55e",
    LineKind.BOSON: "#a855f7",
    LineKind.SCALAR: "#3b82f6",
}

_FILTERS: tuple[ParticleKind | None, ...] = (None, ParticleKind.QUARK, ParticleKind.LEPTON, ParticleKind.BOSON)

_CORRECT = AccuracyResult(points=CORRECT_POINTS, tier=ScoreTier.PERFECT, label="Correct!")
_WRONG = AccuracyResult(points=0, tier=ScoreTier.MISS, label="Wrong!")


def participates(symbol: str, force: Force) -> bool:
    return force in INTERACTIONS.get(symbol, ())


class StandardModel(SimulationBase):
    key = "standard_model"
    title = "Standard Model"
    param_specs = ()
    modes = tuple(StandardModelMode)
    hints = "Click a particle  F force  K filter  1-4 answer  Enter next  T line type  C clear  M mode"

    def _init_state(self) -> None:
        self._selected_particle: ParticleInfo | None = None
        self._highlight: Force | None = None
        self._filter: ParticleKind | None = None
        self._quiz: Quiz | None = None
        self._decay: DecayQuestion | None = None
        self._diagram = FeynmanDiagram()
        self._line_kind = LineKind.FERMION

    @property
    def selected_particle(self) -> ParticleInfo | None:
        return self._selected_particle

    @property
    def highlight(self) -> Force | None:
        return self._highlight

    @property
    def kind_filter(self) -> ParticleKind | None:
        return self._filter

    @property
    def quiz(self) -> Quiz | None:
        return self._quiz

    @property
    def decay_question(self) -> DecayQuestion | None:
        return self._decay

    @property
    def diagram(self) -> FeynmanDiagram:
        return self._diagram

    @property
    def line_kind(self) -> LineKind:
        return self._line_kind

    def _on_mode_changed(self, previous: StrEnum, mode: StrEnum) -> None:
        self._selected_particle = None
        self._highlight = None
        self._quiz = None
        self._decay = None
        self._diagram.clear()
        if mode is StandardModelMode.IDENTIFY:
            self.enter_challenge("Identify the particle from its properties")
            self.new_quiz()
        elif mode is StandardModelMode.DECAY:
            self.enter_challenge("Pick the products of the decay")
            self.new_decay_question()
        else:
            self.exit_challenge()

    # -- explore ------------------------------------------------------------------------

    def select_particle(self, symbol: str | None) -> None:
        self._selected_particle = None if symbol is None else BY_SYMBOL[symbol]

    def cycle_force(self) -> Force | None:
        order: tuple[Force | None, ...] = (None, *Force)
        self._highlight = order[(order.index(self._highlight) + 1) % len(order)]
        return self._highlight

    def cycle_filter(self) -> ParticleKind | None:
        self._filter = _FILTERS[(_FILTERS.index(self._filter) + 1) % len(_FILTERS)]
        self._selected_particle = None
        return self._filter

    def visible(self, particle: ParticleInfo) -> bool:
        return self._filter is None or particle.kind is self._filter

    # -- quizzes --------------------------------------------------------------------------

    def new_quiz(self) -> Quiz:
        answer = self._rng.choice(PARTICLES)
        others = self._rng.sample([p for p in PARTICLES if p.symbol != answer.symbol], QUIZ_OPTIONS - 1)
        options = [answer, *others]
        self._rng.shuffle(options)
        self._quiz = Quiz(answer=answer, options=tuple(options))
        return self._quiz

    def new_decay_question(self) -> DecayQuestion:
        decay = self._rng.choice(DECAYS)
        correct_key = sorted(decay.products)
        seen = [correct_key]
        options: list[tuple[str, ...]] = [decay.products]
        while len(options) < QUIZ_OPTIONS:
            products = tuple(p.symbol for p in self._rng.sample(PARTICLES, len(decay.products)))
            key = sorted(products)
            if key in seen:
                continue
            seen.append(key)
            options.append(products)
        self._rng.shuffle(options)
        self._decay = DecayQuestion(decay=decay, options=tuple(options))
        return self._decay

    def answer(self, index: int) -> bool | None:
        """Answer the open question; returns whether it was right, or None if nothing was graded."""

        if self.mode is StandardModelMode.IDENTIFY and self._quiz is not None:
            question: Quiz | DecayQuestion = self._quiz
            if question.revealed or not (0 <= index < len(question.options)):
                return None
            correct = self._quiz.options[index].symbol == self._quiz.answer.symbol
        elif self.mode is StandardModelMode.DECAY and self._decay is not None:
            question = self._decay
            if question.revealed or not (0 <= index < len(question.options)):
                return None
            correct = index == self._decay.correct_index
        else:
            return None
        question.choice = index
        w, _ = self.viewport
        self.record_result(_CORRECT if correct else _WRONG, x=w / 2, y=self.scene_height() / 2)
        return correct

    def submit(self) -> None:
        if self.mode is StandardModelMode.IDENTIFY and (self._quiz is None or self._quiz.revealed):
            self.new_quiz()
        elif self.mode is StandardModelMode.DECAY and (self._decay is None or self._decay.revealed):
            self.new_decay_question()

    # -- feynman builder ------------------------------------------------------------------

    def add_vertex(self, x: float, y: float) -> bool:
        diagram = self._diagram
        if len(diagram.vertices) >= MAX_VERTICES:
            self._status = f"At most {MAX_VERTICES} vertices; press C to clear"
            return False
        for vx, vy in diagram.vertices:
            if is_point_in_circle(x, y, vx, vy, _VERTEX_HIT_PX):
                return False
        diagram.vertices.append((float(x), float(y)))
        n = len(diagram.vertices)
        if n >= 2:
            diagram.lines.append(FeynmanLine(n - 2, n - 1, self._line_kind, _LINE_LABELS[self._line_kind]))
        self.play_sfx("pop")
        self.particles.emit_sparks(x, y, hex_color(_LINE_COLORS[self._line_kind]), 6)
        return True

    def cycle_line_kind(self) -> LineKind:
        kinds = tuple(LineKind)
        self._line_kind = kinds[(kinds.index(self._line_kind) + 1) % len(kinds)]
        return self._line_kind

    # -- input ------------------------------------------------------------------------------

    def handle_key(self, key: int) -> bool:
        mode = self.mode
        if mode is StandardModelMode.EXPLORE:
            if key == pygame.K_f:
                self.cycle_force()
                return True
            if key == pygame.K_k:
                self.cycle_filter()
                return True
        elif mode in (StandardModelMode.IDENTIFY, StandardModelMode.DECAY):
            n = KEY_DIGITS.get(key)
            if n is not None and n <= QUIZ_OPTIONS:
                self.answer(n - 1)
                return True
        elif mode is StandardModelMode.FEYNMAN:
            if key == pygame.K_t:
                self.cycle_line_kind()
                return True
            if key == pygame.K_c:
                self._diagram.clear()
                self._status = ""
                return True
        return False

    def handle_click(self, x: float, y: float) -> None:
        mode = self.mode
        if mode is StandardModelMode.FEYNMAN:
            dx, dy, dw, dh = self._diagram_rect()
            if is_point_in_rect(x, y, dx, dy + 50, dw, dh - 50):
                self.add_vertex(x, y)
                return
        if mode in (StandardModelMode.IDENTIFY, StandardModelMode.DECAY):
            for i, (ox, oy, ow, oh) in enumerate(self._option_rects()):
                if is_point_in_rect(x, y, ox, oy, ow, oh):
                    self.answer(i)
                    return
            return
        hit = self._particle_at(x, y)
        if hit is not None and self.visible(hit):
            self._selected_particle = hit
            self.play_sfx("click")
            self.particles.emit_glow(x, y, hex_color(hit.color), 6)
        else:
            self._selected_particle = None

    # -- layout -----------------------------------------------------------------------------

    def _grid_geometry(self) -> tuple[float, float, float, float]:
        w, _ = self.viewport
        sh = self.scene_height()
        right = 260.0 if self.mode is StandardModelMode.FEYNMAN else 0.0
        grid_h = sh * 0.62 if self.mode in (StandardModelMode.IDENTIFY, StandardModelMode.DECAY) else sh
        margin = 30.0
        cell_w = (w - right - margin * 2 - 40) / 5
        cell_h = (grid_h - margin * 2 - 40) / 4
        return margin + 20, margin + 40, cell_w, cell_h

    def _cell_rect(self, p: ParticleInfo) -> tuple[float, float, float, float]:
        sx, sy, cw, ch = self._grid_geometry()
        return sx + p.col * cw, sy + p.row * ch, cw, ch

    def _particle_at(self, x: float, y: float) -> ParticleInfo | None:
        for p in PARTICLES:
            if is_point_in_rect(x, y, *self._cell_rect(p)):
                return p
        return None

    def _diagram_rect(self) -> tuple[float, float, float, float]:
        w, _ = self.viewport
        return w - 250.0, 50.0, 230.0, self.scene_height() - 70.0

    def _option_rects(self) -> list[tuple[float, float, float, float]]:
        w, _ = self.viewport
        sh = self.scene_height()
        top = sh * 0.62 + 34
        gap = 12.0
        ow = (w - 60 - gap * (QUIZ_OPTIONS - 1)) / QUIZ_OPTIONS
        return [(30 + i * (ow + gap), top, ow, 44.0) for i in range(QUIZ_OPTIONS)]

    # -- drawing ----------------------------------------------------------------------------

    def _draw_scene(self, canvas: Canvas) -> None:
        w = canvas.width
        draw_text(canvas, "The Standard Model of Particle Physics", w / 2, 20, size=15, color=PANEL_TEXT, align="center", bold=True)
        sx, sy, cw, ch = self._grid_geometry()
        for gen in range(1, 4):
            draw_text(canvas, f"Gen {gen}", sx + (gen - 1) * cw + cw / 2, sy - 8, size=10, color=MUTED_TEXT, align="center")
        draw_text(canvas, "Bosons", sx + 3 * cw + cw / 2, sy - 8, size=10, color=MUTED_TEXT, align="center")
        draw_text(canvas, "Scalar", sx + 4 * cw + cw / 2, sy - 8, size=10, color=MUTED_TEXT, align="center")

        if self._highlight is not None:
            self._draw_force_links(canvas, self._highlight)
        quiz_mode = self.mode in (StandardModelMode.IDENTIFY, StandardModelMode.DECAY)
        for p in PARTICLES:
            self._draw_cell(canvas, p, hide_labels=quiz_mode)

        if self.mode is StandardModelMode.EXPLORE and self._selected_particle is not None:
            self._draw_details(canvas, self._selected_particle)
        elif self.mode is StandardModelMode.IDENTIFY and self._quiz is not None:
            self._draw_quiz(canvas)
        elif self.mode is StandardModelMode.DECAY and self._decay is not None:
            self._draw_decay(canvas)
        elif self.mode is StandardModelMode.FEYNMAN:
            self._draw_diagram(canvas)

        if self.mode is StandardModelMode.EXPLORE:
            label = f"force: {self._highlight or 'none'}   filter: {self._filter or 'all'}"
            draw_text(canvas, label, w / 2, self.scene_height() - 12, size=10, color=MUTED_TEXT, align="center")

    def _draw_cell(self, canvas: Canvas, p: ParticleInfo, *, hide_labels: bool) -> None:
        x, y, cw, ch = self._cell_rect(p)
        filtered = not self.visible(p)
        selected = self._selected_particle is not None and self._selected_particle.symbol == p.symbol
        lit = self._highlight is not None and participates(p.symbol, self._highlight)
        alpha = 0.3 if filtered else 0.1 if selected else 0.08 if lit else 0.6
        base = (255, 255, 255) if (selected or lit) and not filtered else (30, 41, 59)
        fill_rect(canvas, x + 3, y + 3, cw - 6, ch - 6, base, radius=6, alpha=alpha)
        if lit:
            fill_rect(canvas, x + 1, y + 1, cw - 2, ch - 2, hex_color(FORCE_COLORS[self._highlight]), radius=6, width=2)
        if selected:
            fill_rect(canvas, x + 3, y + 3, cw - 6, ch - 6, hex_color(p.color), radius=6, width=2)
        if filtered and not lit:
            return
        dim = 0.2 if self._highlight is not None and not lit else 1.0
        draw_text(canvas, p.symbol, x + cw / 2, y + ch / 2 - 5, size=22, color=hex_color(p.color), align="center", bold=True, alpha=dim)
        if hide_labels:
            return
        draw_text(canvas, p.name, x + cw / 2, y + ch - 14, size=8, color=MUTED_TEXT, align="center", alpha=dim)
        draw_text(canvas, p.mass, x + cw - 8, y + 14, size=8, color=(71, 85, 105), align="right", alpha=dim)
        draw_text(canvas, p.charge, x + 8, y + 14, size=8, color=(71, 85, 105), alpha=dim)

    def _draw_force_links(self, canvas: Canvas, force: Force) -> None:
        color = hex_color(FORCE_COLORS[force])
        lit = [p for p in PARTICLES if participates(p.symbol, force)]
        dim = tuple(int(c * 0.35 + 15 * 0.65) for c in color)
        for i, a in enumerate(lit):
            ax, ay, cw, ch = self._cell_rect(a)
            for b in lit[i + 1 :]:
                bx, by, _, _ = self._cell_rect(b)
                draw_line(canvas, ax + cw / 2, ay + ch / 2, bx + cw / 2, by + ch / 2, dim, width=1)

    def _draw_details(self, canvas: Canvas, p: ParticleInfo) -> None:
        w = canvas.width
        top = self.scene_height() - 120
        fill_rect(canvas, w - 240, top, 230, 104, (0, 0, 0), radius=8, alpha=0.75)
        fill_rect(canvas, w - 240, top, 230, 104, hex_color(p.color), radius=8, width=1)
        draw_text(canvas, f"{p.symbol} - {p.name}", w - 228, top + 16, size=14, color=hex_color(p.color), bold=True)
        lines = (
            f"Mass: {p.mass}",
            f"Charge: {p.charge}e",
            f"Spin: {p.spin}",
            f"Forces: {', '.join(INTERACTIONS[p.symbol])}",
        )
        for i, line in enumerate(lines):
            draw_text(canvas, line, w - 228, top + 38 + i * 16, size=10, color=PANEL_TEXT)

    def _draw_options(self, canvas: Canvas, labels: list[str], correct: int, choice: int | None) -> None:
        for i, (x, y, w, h) in enumerate(self._option_rects()):
            color = (51, 65, 85)
            if choice is not None and i == correct:
                color = hex_color("#22c55e")
            elif choice is not None and i == choice:
                color = hex_color("#ef4444")
            fill_rect(canvas, x, y, w, h, color, radius=8, alpha=0.8)
            draw_text(canvas, f"{i + 1}. {labels[i]}", x + w / 2, y + h / 2, size=12, color=PANEL_TEXT, align="center", bold=True)

    def _draw_quiz(self, canvas: Canvas) -> None:
        quiz = self._quiz
        assert quiz is not None
        w = canvas.width
        y = self.scene_height() * 0.62 + 14
        a = quiz.answer
        gen = f"gen {a.generation}" if a.generation is not None else "no generation"
        clue = f"Mass {a.mass}   Charge {a.charge}e   Spin {a.spin}   {a.kind.value}, {gen}"
        draw_text(canvas, "Which particle has these properties?  " + clue, w / 2, y, size=12, color=PANEL_TEXT, align="center")
        labels = [f"{p.symbol} {p.name}" for p in quiz.options]
        correct = next(i for i, p in enumerate(quiz.options) if p.symbol == a.symbol)
        self._draw_options(canvas, labels, correct, quiz.choice)

    def _draw_decay(self, canvas: Canvas) -> None:
        question = self._decay
        assert question is not None
        w = canvas.width
        y = self.scene_height() * 0.62 + 14
        parent = BY_SYMBOL[question.decay.parent]
        draw_text(canvas, f"{parent.name} ({parent.symbol}) decays into...", w / 2, y, size=12, color=PANEL_TEXT, align="center")
        labels = [" + ".join(opt) for opt in question.options]
        self._draw_options(canvas, labels, question.correct_index, question.choice)
        if question.revealed:
            draw_text(canvas, question.decay.description, w / 2, y + 86, size=11, color=MUTED_TEXT, align="center")

    def _draw_diagram(self, canvas: Canvas) -> None:
        x, y, w, h = self._diagram_rect()
        fill_rect(canvas, x, y, w, h, (0, 0, 0), radius=8, alpha=0.5)
        fill_rect(canvas, x, y, w, h, (255, 255, 255), radius=8, alpha=0.15, width=1)
        draw_text(canvas, "FEYNMAN DIAGRAM", x + w / 2, y + 16, size=11, color=hex_color("#f59e0b"), align="center", bold=True)
        draw_text(canvas, f"Click to add vertices  next line: {self._line_kind.value}", x + w / 2, y + 34, size=9, color=MUTED_TEXT, align="center")

        verts = self._diagram.vertices
        for line in self._diagram.lines:
            (x1, y1), (x2, y2) = verts[line.start], verts[line.end]
            color = hex_color(_LINE_COLORS[line.kind])
            if line.kind is LineKind.BOSON:
                dist = math.hypot(x2 - x1, y2 - y1)
                steps = max(8, int(dist / 8))
                pts = [
                    (x1 + (x2 - x1) * i / steps, y1 + (y2 - y1) * i / steps + math.sin(i / steps * math.pi * 6) * 6)
                    for i in range(steps + 1)
                ]
                draw_polyline(canvas, pts, color, width=2)
            elif line.kind is LineKind.SCALAR:
                draw_line(canvas, x1, y1, x2, y2, color, width=2, dashed=True)
            else:
                draw_line(canvas, x1, y1, x2, y2, color, width=2)
                mag = math.hypot(x2 - x1, y2 - y1)
                if mag > 5:
                    nx, ny = (x2 - x1) / mag, (y2 - y1) / mag
                    mx, my = (x1 + x2) / 2, (y1 + y2) / 2
                    fill_polygon(
                        canvas,
                        (
                            (mx + nx * 6, my + ny * 6),
                            (mx - nx * 4 - ny * 4, my - ny * 4 + nx * 4),
                            (mx - nx * 4 + ny * 4, my - ny * 4 - nx * 4),
                        ),
                        color,
                    )
            draw_text(canvas, line.label, (x1 + x2) / 2, (y1 + y2) / 2 - 10, size=10, color=(255, 255, 255), align="center")
        for vx, vy in verts:
            draw_circle(canvas, vx, vy, 5, (255, 255, 255))

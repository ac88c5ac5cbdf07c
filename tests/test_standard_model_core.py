from __future__ import annotations

import os

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame

from physlab.standard_model import (
    BY_SYMBOL,
    DECAYS,
    MAX_VERTICES,
    PARTICLES,
    QUIZ_OPTIONS,
    Force,
    LineKind,
    ParticleKind,
    StandardModel,
    StandardModelMode,
    participates,
)


def test_particle_table() -> None:
    assert len(PARTICLES) == 17
    assert sum(p.kind is ParticleKind.QUARK for p in PARTICLES) == 6
    assert sum(p.kind is ParticleKind.LEPTON for p in PARTICLES) == 6
    assert len({(p.row, p.col) for p in PARTICLES}) == len(PARTICLES)
    assert all(d.parent in BY_SYMBOL and all(s in BY_SYMBOL for s in d.products) for d in DECAYS)


def test_force_participation() -> None:
    assert participates("u", Force.STRONG)
    assert not participates("e", Force.STRONG)
    assert not participates("νe", Force.ELECTROMAGNETIC)
    assert participates("W", Force.ELECTROMAGNETIC)
    assert not participates("unknown", Force.WEAK)


def test_force_and_filter_cycles() -> None:
    sm = StandardModel(seed=1)
    seen = [sm.cycle_force() for _ in range(len(Force) + 1)]
    assert seen[:-1] == list(Force)
    assert seen[-1] is None

    assert sm.cycle_filter() is ParticleKind.QUARK
    assert sm.visible(BY_SYMBOL["u"])
    assert not sm.visible(BY_SYMBOL["e"])
    for _ in range(3):
        sm.cycle_filter()
    assert sm.kind_filter is None


def test_explore_keys_and_grid_click() -> None:
    sm = StandardModel(seed=1)
    assert sm.handle_key(pygame.K_f)
    assert sm.highlight is Force.STRONG
    assert sm.handle_key(pygame.K_k)
    assert not sm.handle_key(pygame.K_1)

    # Default viewport: the grid starts at (50, 70) with 172 x 111.5 cells.
    sm.handle_click(60.0, 80.0)
    assert sm.selected_particle is BY_SYMBOL["u"]
    sm.handle_click(5.0, 5.0)
    assert sm.selected_particle is None


def test_identify_quiz_round() -> None:
    sm = StandardModel(seed=2)
    sm.set_mode(StandardModelMode.IDENTIFY)
    quiz = sm.quiz
    assert quiz is not None
    assert len(quiz.options) == QUIZ_OPTIONS
    assert len({p.symbol for p in quiz.options}) == QUIZ_OPTIONS
    right = next(i for i, p in enumerate(quiz.options) if p.symbol == quiz.answer.symbol)

    assert sm.answer(right) is True
    assert sm.answer(right) is None
    assert sm.challenge.score == 3

    sm.submit()
    assert sm.quiz is not quiz
    assert not sm.quiz.revealed

    wrong = next(i for i, p in enumerate(sm.quiz.options) if p.symbol != sm.quiz.answer.symbol)
    assert sm.handle_key(pygame.K_1 + wrong)
    assert sm.challenge.attempts == 2
    assert sm.challenge.score == 3
    assert sm.challenge.last_result is not None
    assert sm.challenge.last_result.label == "Wrong!"


def test_decay_question_has_one_correct_option() -> None:
    sm = StandardModel(seed=3)
    sm.set_mode(StandardModelMode.DECAY)
    question = sm.decay_question
    assert question is not None
    keys = [tuple(sorted(opt)) for opt in question.options]
    assert len(set(keys)) == QUIZ_OPTIONS
    assert sorted(question.options[question.correct_index]) == sorted(question.decay.products)

    assert sm.answer(question.correct_index) is True
    assert sm.answer(5) is None
    sm.submit()
    assert sm.decay_question is not question


def test_feynman_builder() -> None:
    sm = StandardModel(seed=4)
    sm.set_mode(StandardModelMode.FEYNMAN)
    assert not sm.challenge.active

    assert sm.add_vertex(100.0, 100.0)
    assert sm.handle_key(pygame.K_t)
    assert sm.line_kind is LineKind.BOSON
    assert sm.add_vertex(200.0, 100.0)
    assert not sm.add_vertex(205.0, 105.0)
    assert len(sm.diagram.lines) == 1
    assert sm.diagram.lines[0].kind is LineKind.BOSON

    for i in range(MAX_VERTICES):
        sm.add_vertex(50.0 * i, 300.0)
    assert len(sm.diagram.vertices) == MAX_VERTICES
    assert len(sm.diagram.lines) == MAX_VERTICES - 1
    assert "C to clear" in sm.status

    assert sm.handle_key(pygame.K_c)
    assert sm.diagram.vertices == []


def test_feynman_click_inside_panel_adds_vertex() -> None:
    sm = StandardModel(seed=4)
    sm.set_mode(StandardModelMode.FEYNMAN)
    # Panel is x 710..940, clicks accepted from y 100 down.
    sm.handle_click(800.0, 200.0)
    assert sm.diagram.vertices == [(800.0, 200.0)]
    sm.handle_click(800.0, 60.0)
    assert len(sm.diagram.vertices) == 1


def test_mode_change_clears_state() -> None:
    sm = StandardModel(seed=5)
    sm.select_particle("H")
    sm.cycle_force()
    sm.set_mode(StandardModelMode.IDENTIFY)
    assert sm.selected_particle is None
    assert sm.highlight is None
    assert sm.challenge.active
    sm.set_mode(StandardModelMode.EXPLORE)
    assert sm.quiz is None
    assert not sm.challenge.active

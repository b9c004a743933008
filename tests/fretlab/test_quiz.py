import logging
from random import Random
from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fretlab.quiz import (
    QUIZ_PRESETS,
    QuizGenerator,
    QuizMode,
    QuizPreferences,
    QuizQuestion,
    QuizSession,
    clamp_question_count,
    describe,
    validate_answer,
)
from fretlab.shapes import CAGED_ORDER, ShapeLetter, shape_base_position
from fretlab.theory import Quality
from tests.fretlab.hypo import configure_hypo

configure_hypo()

C, A, G, E, D = ShapeLetter.C, ShapeLetter.A, ShapeLetter.G, ShapeLetter.E, ShapeLetter.D


def prefs(mode: QuizMode = QuizMode.Mixed, count: int = 10) -> QuizPreferences:
    return QuizPreferences(mode, count, CAGED_ORDER, CAGED_ORDER)


def test_default_preferences() -> None:
    default = QuizPreferences.default()
    assert default.mode == QuizMode.Mixed
    assert default.question_count == 10
    assert default.allowed_chords == (C, A, G, E, D)
    assert default.allowed_shapes == (C, A, G, E, D)


def test_parse_valid_preferences() -> None:
    raw = {
        "quizMode": "minor",
        "questionCount": 20,
        "allowedChords": ["C", "G", "D"],
        "allowedShapes": ["E", "A"],
    }
    parsed = QuizPreferences.parse(raw)
    assert parsed == QuizPreferences(QuizMode.Minor, 20, (C, G, D), (E, A))
    assert parsed.to_json_dict() == raw


@pytest.mark.parametrize(
    "raw, field",
    [
        ({"quizMode": "diminished"}, "quizMode"),
        ({"questionCount": 0}, "questionCount"),
        ({"questionCount": "ten"}, "questionCount"),
        ({"questionCount": True}, "questionCount"),
        ({"allowedChords": []}, "allowedChords"),
        ({"allowedChords": ["C", "B"]}, "allowedChords"),
        ({"allowedShapes": "CAGED"}, "allowedShapes"),
        ({"allowedShapes": [1, 2]}, "allowedShapes"),
    ],
)
def test_parse_defaults_bad_fields(
    raw: Any, field: str, caplog: pytest.LogCaptureFixture
) -> None:
    base = QuizPreferences.default().to_json_dict()
    base.update(raw)
    with caplog.at_level(logging.WARNING):
        parsed = QuizPreferences.parse(base)
    assert parsed == QuizPreferences.default()
    assert field in caplog.text


def test_parse_non_object() -> None:
    assert QuizPreferences.parse(["mixed"]) == QuizPreferences.default()
    assert QuizPreferences.parse(None) == QuizPreferences.default()


def test_parse_clamps_count_and_dedupes() -> None:
    parsed = QuizPreferences.parse(
        {
            "quizMode": "major",
            "questionCount": 500,
            "allowedChords": ["c", "C", "a"],
            "allowedShapes": ["D"],
        }
    )
    assert parsed.question_count == 50
    assert parsed.allowed_chords == (C, A)
    assert clamp_question_count(1) == 5
    assert clamp_question_count(12) == 12


@pytest.mark.parametrize(
    "stored, expected", [(10.0, 10), (3, 5), (3.0, 5), (75, 50), (12, 12)]
)
def test_parse_whole_question_counts(stored: Any, expected: int) -> None:
    raw = QuizPreferences.default().to_json_dict()
    raw["questionCount"] = stored
    assert QuizPreferences.parse(raw).question_count == expected


def test_parse_rejects_fractional_count() -> None:
    raw = QuizPreferences.default().to_json_dict()
    raw["questionCount"] = 7.5
    assert QuizPreferences.parse(raw).question_count == 10


def test_presets() -> None:
    beginner = QUIZ_PRESETS["beginner"]
    assert beginner.mode == QuizMode.Major
    assert beginner.question_count == 5
    assert beginner.allowed_chords == (C, G, D)
    assert QUIZ_PRESETS["intermediate"] == QuizPreferences.default()


@pytest.mark.parametrize(
    "mode, quality",
    [(QuizMode.Major, Quality.Major), (QuizMode.Minor, Quality.Minor)],
)
def test_single_quality_modes(mode: QuizMode, quality: Quality) -> None:
    generator = QuizGenerator(prefs(mode, 7), Random(1))
    assert generator.qualities() == [quality] * 7


@given(st.integers(min_value=5, max_value=50), st.integers())
def test_mixed_mode_is_balanced(count: int, seed: int) -> None:
    qualities = QuizGenerator(prefs(QuizMode.Mixed, count), Random(seed)).qualities()
    assert len(qualities) == count
    majors = qualities.count(Quality.Major)
    assert majors == (count + 1) // 2
    assert qualities.count(Quality.Minor) == count - majors


@given(st.integers())
def test_generated_questions(seed: int) -> None:
    settings = QuizPreferences(QuizMode.Mixed, 12, (C, G, D), (E, A))
    questions = QuizGenerator(settings, Random(seed)).generate()
    assert [q.id for q in questions] == list(range(1, 13))
    for question in questions:
        assert question.root in (C, G, D)
        assert question.shape in (E, A)
        assert question.position == shape_base_position(
            question.shape, question.root.natural_root
        )
        assert sorted(question.choices, key=lambda s: s.name) == [C, D, G]
        assert question.correct_answer == question.root
        assert validate_answer(question, question.root)


def test_generation_is_seeded() -> None:
    first = QuizGenerator(prefs(), Random(42)).generate()
    second = QuizGenerator(prefs(), Random(42)).generate()
    assert first == second


def test_describe() -> None:
    question = QuizQuestion(
        id=1, root=G, shape=E, position=3, choices=CAGED_ORDER, quality=Quality.Major
    )
    assert (
        describe(question)
        == "What major chord is being played using the E shape at position 3?"
    )
    assert not validate_answer(question, E)


def make_questions(count: int) -> list:
    return QuizGenerator(prefs(QuizMode.Major, count), Random(0)).generate()[:count]


def test_session_flow() -> None:
    session = QuizSession()
    assert session.current_question is None
    assert session.progress == 0
    assert session.score_percentage == 0

    questions = make_questions(4)
    session.start(questions)
    assert session.state.is_active
    assert session.state.total == 4
    assert session.current_question == questions[0]

    first = session.answer(questions[0].root)
    assert first.is_correct
    session.next_question()
    assert session.progress == 0.25

    wrong = next(c for c in CAGED_ORDER if c != questions[1].root)
    assert not session.answer(wrong).is_correct
    session.next_question()
    session.answer(questions[2].root)
    session.next_question()
    assert session.state.is_active
    session.answer(questions[3].root)
    session.next_question()

    assert not session.state.is_active
    assert session.state.is_completed
    assert session.state.score == 3
    assert session.score_percentage == 75
    assert session.progress == 1
    assert len(session.state.answers) == 4
    assert session.current_question is None
    with pytest.raises(ValueError):
        session.answer(C)


def test_session_finish_and_reset() -> None:
    session = QuizSession()
    session.start(make_questions(5))
    session.finish()
    assert session.state.is_completed
    assert not session.state.is_active
    with pytest.raises(ValueError):
        session.answer(C)
    session.reset()
    assert session.state.total == 0
    assert not session.state.is_completed
    assert session.state.questions == ()


def test_session_restart_clears_score() -> None:
    session = QuizSession()
    questions = make_questions(5)
    session.start(questions)
    session.answer(questions[0].root)
    session.start(questions)
    assert session.state.score == 0
    assert session.state.answers == ()
    assert session.state.current_index == 0


def test_question_is_scored_once() -> None:
    session = QuizSession()
    questions = make_questions(5)
    session.start(questions)
    session.answer(questions[0].root)
    with pytest.raises(ValueError):
        session.answer(questions[0].root)
    assert session.state.score == 1
    assert len(session.state.answers) == 1
    session.next_question()
    session.answer(questions[1].root)
    assert session.state.score == 2
    assert session.score_percentage <= 100

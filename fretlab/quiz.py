"""CAGED chord identification quiz.

Each question shows a chord played with one CAGED shape at some fret
position and asks which chord it is. Preferences pick the qualities, the
number of questions and which chords and shapes may appear.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum, unique
from logging import Logger
from random import Random
from typing import Any, Dict, List, Mapping, Optional, Tuple, override

from fretlab import constants
from fretlab.base import MatchException, Resettable
from fretlab.shapes import CAGED_ORDER, ShapeLetter, shape_base_position
from fretlab.theory import Quality


@unique
class QuizMode(Enum):
    Major = "major"
    Minor = "minor"
    Mixed = "mixed"


@dataclass(frozen=True)
class QuizPreferences:
    """User settings for generating a quiz."""

    mode: QuizMode
    question_count: int
    allowed_chords: Tuple[ShapeLetter, ...]
    """Chords that may be asked about, also the answer choices."""
    allowed_shapes: Tuple[ShapeLetter, ...]
    """Shapes a question may play its chord with."""

    @staticmethod
    def default() -> QuizPreferences:
        return QuizPreferences(
            mode=QuizMode.Mixed,
            question_count=constants.DEFAULT_QUESTION_COUNT,
            allowed_chords=CAGED_ORDER,
            allowed_shapes=CAGED_ORDER,
        )

    @staticmethod
    def parse(raw: Any, logger: Optional[Logger] = None) -> QuizPreferences:
        """Read preferences from stored JSON data.

        Stored data may be stale or hand-edited, so every malformed field
        falls back to its default instead of failing. Question counts may be
        any positive whole number, including integral floats such as
        ``10.0``, and are clamped to the allowed range.

        Args:
            raw: Decoded JSON, expected to be an object with camelCase keys.
            logger: Where to report the fields that were replaced.

        Returns:
            Valid preferences.
        """
        log = logger if logger is not None else logging.getLogger(__name__)
        default = QuizPreferences.default()
        if not isinstance(raw, Mapping):
            log.warning("Quiz preferences are not an object, using defaults")
            return default
        replaced: List[str] = []

        mode = default.mode
        try:
            mode = QuizMode(raw.get("quizMode"))
        except ValueError:
            replaced.append("quizMode")

        count = raw.get("questionCount")
        if isinstance(count, float) and count.is_integer():
            count = int(count)
        if isinstance(count, int) and not isinstance(count, bool) and count > 0:
            question_count = clamp_question_count(count)
        else:
            question_count = default.question_count
            replaced.append("questionCount")

        allowed_chords = _parse_letters(raw.get("allowedChords"))
        if allowed_chords is None:
            allowed_chords = default.allowed_chords
            replaced.append("allowedChords")

        allowed_shapes = _parse_letters(raw.get("allowedShapes"))
        if allowed_shapes is None:
            allowed_shapes = default.allowed_shapes
            replaced.append("allowedShapes")

        if replaced:
            log.warning("Replaced invalid quiz preferences with defaults: %s", replaced)
        return QuizPreferences(mode, question_count, allowed_chords, allowed_shapes)

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "quizMode": self.mode.value,
            "questionCount": self.question_count,
            "allowedChords": [letter.name for letter in self.allowed_chords],
            "allowedShapes": [letter.name for letter in self.allowed_shapes],
        }


def clamp_question_count(count: int) -> int:
    return max(constants.MIN_QUESTION_COUNT, min(constants.MAX_QUESTION_COUNT, count))


def _parse_letters(raw: Any) -> Optional[Tuple[ShapeLetter, ...]]:
    if not isinstance(raw, list) or len(raw) == 0:
        return None
    letters: List[ShapeLetter] = []
    for item in raw:
        if not isinstance(item, str):
            return None
        try:
            letter = ShapeLetter.parse(item)
        except ValueError:
            return None
        if letter not in letters:
            letters.append(letter)
    return tuple(letters)


QUIZ_PRESETS: Dict[str, QuizPreferences] = {
    "beginner": QuizPreferences(
        mode=QuizMode.Major,
        question_count=5,
        allowed_chords=(ShapeLetter.C, ShapeLetter.G, ShapeLetter.D),
        allowed_shapes=(ShapeLetter.C, ShapeLetter.G, ShapeLetter.D),
    ),
    "intermediate": QuizPreferences.default(),
    "advanced": QuizPreferences.default(),
}


@dataclass(frozen=True)
class QuizQuestion:
    id: int
    """One-based question number."""
    root: ShapeLetter
    """The chord being played, and so the correct answer."""
    shape: ShapeLetter
    """The shape the chord is played with."""
    position: int
    """Base fret of the shape."""
    choices: Tuple[ShapeLetter, ...]
    quality: Quality

    @property
    def correct_answer(self) -> ShapeLetter:
        return self.root


class QuizGenerator:
    """Generates quiz questions from preferences.

    All randomness comes from the given ``Random`` so a seeded generator
    produces the same quiz every time.
    """

    def __init__(self, prefs: QuizPreferences, rng: Optional[Random] = None) -> None:
        self._prefs = prefs
        self._rng = rng if rng is not None else Random()

    @property
    def prefs(self) -> QuizPreferences:
        return self._prefs

    def qualities(self) -> List[Quality]:
        """Quality of each question.

        Mixed quizzes are balanced, with the extra question of an odd
        count going to major, then shuffled.
        """
        count = self._prefs.question_count
        mode = self._prefs.mode
        if mode == QuizMode.Major:
            return [Quality.Major] * count
        elif mode == QuizMode.Minor:
            return [Quality.Minor] * count
        elif mode == QuizMode.Mixed:
            major_count = math.ceil(count / 2)
            qualities = [Quality.Major] * major_count + [Quality.Minor] * (
                count - major_count
            )
            self._rng.shuffle(qualities)
            return qualities
        else:
            raise MatchException(mode)

    def generate(self) -> List[QuizQuestion]:
        questions: List[QuizQuestion] = []
        for index, quality in enumerate(self.qualities()):
            root = self._rng.choice(self._prefs.allowed_chords)
            shape = self._rng.choice(self._prefs.allowed_shapes)
            choices = list(self._prefs.allowed_chords)
            self._rng.shuffle(choices)
            questions.append(
                QuizQuestion(
                    id=index + 1,
                    root=root,
                    shape=shape,
                    position=shape_base_position(shape, root.natural_root),
                    choices=tuple(choices),
                    quality=quality,
                )
            )
        return questions


def describe(question: QuizQuestion) -> str:
    return (
        f"What {question.quality.value} chord is being played using the "
        f"{question.shape.name} shape at position {question.position}?"
    )


def validate_answer(question: QuizQuestion, answer: ShapeLetter) -> bool:
    return answer == question.correct_answer


@dataclass(frozen=True)
class QuizAnswer:
    question_id: int
    selected: ShapeLetter
    correct: ShapeLetter

    @property
    def is_correct(self) -> bool:
        return self.selected == self.correct


@dataclass(frozen=True)
class QuizState:
    questions: Tuple[QuizQuestion, ...]
    answers: Tuple[QuizAnswer, ...]
    current_index: int
    score: int
    total: int
    is_active: bool
    is_completed: bool

    @staticmethod
    def initial() -> QuizState:
        return QuizState((), (), 0, 0, 0, False, False)


class QuizSession(Resettable):
    """Progress through one quiz.

    ``start`` begins a quiz, ``answer`` records the answer to the current
    question, ``next_question`` moves on and completes the quiz after the
    last question, ``finish`` ends it early and ``reset`` clears it.
    """

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._state = QuizState.initial()

    @property
    def state(self) -> QuizState:
        return self._state

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        index = self._state.current_index
        if 0 <= index < len(self._state.questions):
            return self._state.questions[index]
        return None

    @property
    def progress(self) -> float:
        """Fraction of questions moved past, in [0, 1]."""
        if self._state.total == 0:
            return 0.0
        return self._state.current_index / self._state.total

    @property
    def score_percentage(self) -> float:
        if self._state.total == 0:
            return 0.0
        return self._state.score / self._state.total * 100

    def start(self, questions: List[QuizQuestion]) -> None:
        self._state = replace(
            self._state,
            questions=tuple(questions),
            answers=(),
            current_index=0,
            score=0,
            total=len(questions),
            is_active=True,
            is_completed=False,
        )
        self._logger.info("Quiz started with %d questions", len(questions))

    def answer(self, selected: ShapeLetter) -> QuizAnswer:
        """Record an answer to the current question.

        Raises:
            ValueError: If there is no current question to answer, or it
                was already answered.
        """
        question = self.current_question
        if not self._state.is_active or question is None:
            raise ValueError("No question to answer")
        if any(a.question_id == question.id for a in self._state.answers):
            raise ValueError(f"Question {question.id} was already answered")
        answer = QuizAnswer(question.id, selected, question.correct_answer)
        self._state = replace(
            self._state,
            answers=self._state.answers + (answer,),
            score=self._state.score + (1 if answer.is_correct else 0),
        )
        return answer

    def next_question(self) -> None:
        next_index = self._state.current_index + 1
        if next_index >= self._state.total:
            self._state = replace(
                self._state,
                current_index=next_index,
                is_active=False,
                is_completed=True,
            )
            self._logger.info(
                "Quiz completed with score %d/%d", self._state.score, self._state.total
            )
        else:
            self._state = replace(self._state, current_index=next_index)

    def finish(self) -> None:
        self._state = replace(self._state, is_active=False, is_completed=True)

    @override
    def reset(self) -> None:
        self._state = QuizState.initial()

"""Rhythm patterns for one beat and their sub-beat timing.

A rhythm pattern divides a single beat into notes and rests. Durations are
exact fractions of a beat, so the durations of every library pattern sum to
exactly one. ``schedule_subdivisions`` turns a pattern and a beat length
into the offsets at which each note starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from fractions import Fraction
from random import Random
from typing import Dict, List, Optional, Sequence, Tuple, Union

from fretlab import constants

Numeric = Union[int, float, Fraction]
"""Values accepted as durations; converted to Fraction."""


def numeric_frac(numeric: Numeric) -> Fraction:
    """Convert a numeric value to a Fraction.

    Floats are snapped to the closest fraction with a denominator of at
    most one million, so ``1 / 3`` becomes exactly one third and short
    durations keep their value.

    Raises:
        ValueError: If the value cannot be converted to a Fraction.
    """
    if isinstance(numeric, Fraction):
        return numeric
    elif isinstance(numeric, int):
        return Fraction(numeric)
    elif isinstance(numeric, float):
        return Fraction(numeric).limit_denominator()
    else:
        raise ValueError(f"Cannot convert {type(numeric)} to Fraction")


@unique
class Subdivision(Enum):
    """How a pattern divides its beat, used to group patterns for display."""

    Quarter = "quarter"
    Eighths = "eighths"
    Sixteenths = "sixteenths"
    Triplets = "triplets"

    @property
    def display_name(self) -> str:
        return _CATEGORY_DISPLAY_NAMES[self]


_CATEGORY_DISPLAY_NAMES = {
    Subdivision.Quarter: "Quarter Notes",
    Subdivision.Eighths: "Eighth Notes",
    Subdivision.Sixteenths: "Sixteenth Notes",
    Subdivision.Triplets: "Triplets",
}


@dataclass(frozen=True)
class RhythmNote:
    """A note or rest lasting a fraction of one beat."""

    duration: Fraction
    """Fraction of the beat, in (0, 1]."""
    is_rest: bool

    @staticmethod
    def mk(duration: Numeric, is_rest: bool = False) -> RhythmNote:
        return RhythmNote(numeric_frac(duration), is_rest)


@dataclass(frozen=True)
class RhythmPattern:
    """A named sequence of notes filling exactly one beat."""

    id: str
    name: str
    notes: Tuple[RhythmNote, ...]
    category: Subdivision

    @property
    def total_duration(self) -> Fraction:
        return sum((note.duration for note in self.notes), Fraction(0))


def _pattern(
    pattern_id: str, name: str, category: Subdivision, *notes: Tuple[Numeric, bool]
) -> RhythmPattern:
    return RhythmPattern(
        id=pattern_id,
        name=name,
        notes=tuple(RhythmNote.mk(duration, is_rest) for duration, is_rest in notes),
        category=category,
    )


_Q = Fraction(1, 4)
_E = Fraction(1, 2)
_T = Fraction(1, 3)

QUARTER_PATTERNS: List[RhythmPattern] = [
    _pattern("quarter", "Quarter Note", Subdivision.Quarter, (1, False)),
    _pattern("quarter-rest", "Quarter Rest", Subdivision.Quarter, (1, True)),
]

EIGHTH_PATTERNS: List[RhythmPattern] = [
    _pattern("two-eighths", "Two Eighths", Subdivision.Eighths, (_E, False), (_E, False)),
    _pattern("eighth-eighth-rest", "Eighth + Rest", Subdivision.Eighths, (_E, False), (_E, True)),
    _pattern("eighth-rest-eighth", "Rest + Eighth", Subdivision.Eighths, (_E, True), (_E, False)),
]

SIXTEENTH_PATTERNS: List[RhythmPattern] = [
    _pattern(
        "four-sixteenths",
        "Four Sixteenths",
        Subdivision.Sixteenths,
        (_Q, False),
        (_Q, False),
        (_Q, False),
        (_Q, False),
    ),
    _pattern(
        "eighth-two-sixteenths",
        "Eighth + 2 Sixteenths",
        Subdivision.Sixteenths,
        (_E, False),
        (_Q, False),
        (_Q, False),
    ),
    _pattern(
        "two-sixteenths-eighth",
        "2 Sixteenths + Eighth",
        Subdivision.Sixteenths,
        (_Q, False),
        (_Q, False),
        (_E, False),
    ),
    _pattern(
        "sixteenth-eighth-sixteenth",
        "Sixteenth + Eighth + Sixteenth",
        Subdivision.Sixteenths,
        (_Q, False),
        (_E, False),
        (_Q, False),
    ),
    _pattern(
        "dotted-eighth-sixteenth",
        "Dotted Eighth + Sixteenth",
        Subdivision.Sixteenths,
        (3 * _Q, False),
        (_Q, False),
    ),
    _pattern(
        "sixteenth-dotted-eighth",
        "Sixteenth + Dotted Eighth",
        Subdivision.Sixteenths,
        (_Q, False),
        (3 * _Q, False),
    ),
    _pattern(
        "three-sixteenths-rest",
        "3 Sixteenths + Rest",
        Subdivision.Sixteenths,
        (_Q, False),
        (_Q, False),
        (_Q, False),
        (_Q, True),
    ),
    _pattern(
        "rest-three-sixteenths",
        "Rest + 3 Sixteenths",
        Subdivision.Sixteenths,
        (_Q, True),
        (_Q, False),
        (_Q, False),
        (_Q, False),
    ),
]

# Triplets divide the beat into three equal parts.
TRIPLET_PATTERNS: List[RhythmPattern] = [
    _pattern("triplet", "Triplet", Subdivision.Triplets, (_T, False), (_T, False), (_T, False)),
    _pattern(
        "triplet-rest-end",
        "Triplet + Rest",
        Subdivision.Triplets,
        (_T, False),
        (_T, False),
        (_T, True),
    ),
    _pattern(
        "triplet-rest-start",
        "Rest + Triplet",
        Subdivision.Triplets,
        (_T, True),
        (_T, False),
        (_T, False),
    ),
    _pattern(
        "triplet-rest-middle",
        "Triplet (Rest Middle)",
        Subdivision.Triplets,
        (_T, False),
        (_T, True),
        (_T, False),
    ),
]

ALL_PATTERNS: List[RhythmPattern] = (
    QUARTER_PATTERNS + EIGHTH_PATTERNS + SIXTEENTH_PATTERNS + TRIPLET_PATTERNS
)

PATTERNS_BY_CATEGORY: Dict[Subdivision, List[RhythmPattern]] = {
    Subdivision.Quarter: QUARTER_PATTERNS,
    Subdivision.Eighths: EIGHTH_PATTERNS,
    Subdivision.Sixteenths: SIXTEENTH_PATTERNS,
    Subdivision.Triplets: TRIPLET_PATTERNS,
}

PATTERN_LOOKUP: Dict[str, RhythmPattern] = {p.id: p for p in ALL_PATTERNS}

DEFAULT_PATTERN = QUARTER_PATTERNS[0]
"""Pattern every rhythm panel starts with."""


def validate_pattern(pattern: RhythmPattern) -> bool:
    """Check that a pattern's durations fill exactly one beat."""
    if any(note.duration <= 0 or note.duration > 1 for note in pattern.notes):
        return False
    return abs(pattern.total_duration - 1) < constants.DURATION_TOLERANCE


def pattern_by_id(pattern_id: str) -> Optional[RhythmPattern]:
    return PATTERN_LOOKUP.get(pattern_id)


def subdivision_count(pattern: RhythmPattern) -> int:
    """Number of notes and rests in a pattern."""
    return len(pattern.notes)


def audible_note_count(pattern: RhythmPattern) -> int:
    """Number of non-rest notes in a pattern."""
    return sum(1 for note in pattern.notes if not note.is_rest)


def random_pattern(rng: Random, category: Optional[Subdivision] = None) -> RhythmPattern:
    """Pick a pattern uniformly, optionally from one category."""
    patterns = PATTERNS_BY_CATEGORY[category] if category is not None else ALL_PATTERNS
    return rng.choice(patterns)


def random_panel_index(rng: Random) -> int:
    return rng.randrange(constants.BEATS_PER_MEASURE)


def random_panels(rng: Random) -> List[RhythmPattern]:
    """Pick a random pattern for each beat of the measure."""
    return [random_pattern(rng) for _ in range(constants.BEATS_PER_MEASURE)]


@dataclass(frozen=True)
class ScheduledNote:
    """When a note of a pattern starts within its beat."""

    offset: Fraction
    """Start of the note as a fraction of the beat."""
    offset_ms: float
    """Start of the note in milliseconds after the beat."""
    is_rest: bool


def schedule_subdivisions(
    pattern: RhythmPattern, beat_duration_ms: Numeric
) -> List[ScheduledNote]:
    """Lay out a pattern's notes along one beat.

    Offsets accumulate from zero, one entry per note. Rests are included
    so callers know the whole timeline and can skip sounding them.

    Args:
        pattern: The pattern to schedule.
        beat_duration_ms: Length of the beat in milliseconds.

    Returns:
        One scheduled entry per note, with non-decreasing offsets.
    """
    beat_ms = Fraction(beat_duration_ms)
    scheduled: List[ScheduledNote] = []
    offset = Fraction(0)
    for note in pattern.notes:
        scheduled.append(
            ScheduledNote(offset=offset, offset_ms=float(offset * beat_ms), is_rest=note.is_rest)
        )
        offset += note.duration
    return scheduled


def audible_offsets_ms(scheduled: Sequence[ScheduledNote]) -> List[float]:
    """Offsets of the notes that should actually click."""
    return [s.offset_ms for s in scheduled if not s.is_rest]

"""Chromatic arithmetic and note classification on a guitar fretboard.

This module holds the pure note-level half of the theory engine: pitch
class arithmetic (always reduced mod 12), the standard tuning, note names
in sharp notation, the chord and pentatonic interval sets, and membership
tests for a fretboard position against an interval set rooted anywhere.
Nothing here holds state; every function is a pure function of its
arguments and the fixed tuning table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Iterable, Iterator, List, NewType, Sequence, Set, Tuple

from fretlab import constants
from fretlab.base import FretboardRangeError, MatchException

Chroma = NewType("Chroma", int)
"""A pitch class in [0, 11], 0 = C."""

NOTE_NAMES: Tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)
"""Sharp-notation name of each pitch class. Flats are never produced."""

NATURAL_CHROMAS = frozenset([0, 2, 4, 5, 7, 9, 11])
"""Pitch classes of the white keys."""


def chroma(value: int) -> Chroma:
    """Reduce any integer to a pitch class.

    Python's ``%`` is a floor modulus, so the result is non-negative
    even for negative inputs.
    """
    return Chroma(value % constants.CHROMATIC_OCTAVE)


def chromatic_distance(from_note: int, to_note: int) -> Chroma:
    """Count the semitones going up from one pitch class to another.

    Args:
        from_note: Starting pitch class.
        to_note: Target pitch class.

    Returns:
        The upward distance in semitones, in [0, 11].
    """
    return chroma(to_note - from_note)


@unique
class Quality(Enum):
    """Chord quality of a CAGED shape, triad or pentatonic scale."""

    Major = "major"
    Minor = "minor"

    @staticmethod
    def parse(value: str) -> Quality:
        """Look up a quality by its lower case name.

        Raises:
            ValueError: If the name is not ``major`` or ``minor``.
        """
        return Quality(value.lower())


@dataclass(frozen=True)
class IntervalSet:
    """A named, ordered sequence of semitone offsets from a root.

    Used for triads (3 notes) and pentatonic scales (5 notes) alike:
    membership tests treat both identically.
    """

    name: str
    """Human-readable name of the interval set."""
    intervals: Tuple[int, ...]
    """Semitone offsets from the root, starting with 0."""

    def __iter__(self) -> Iterator[int]:
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)

    def members(self, root: int) -> Set[Chroma]:
        """Return the pitch classes of this set rooted at ``root``."""
        return pitch_classes(root, self.intervals)


MAJOR_TRIAD = IntervalSet("Major Triad", (0, 4, 7))
MINOR_TRIAD = IntervalSet("Minor Triad", (0, 3, 7))
MAJOR_PENTATONIC = IntervalSet("Major Pentatonic", (0, 2, 4, 7, 9))
MINOR_PENTATONIC = IntervalSet("Minor Pentatonic", (0, 3, 5, 7, 10))


def chord_intervals(quality: Quality) -> IntervalSet:
    """Get the triad for a chord quality."""
    if quality == Quality.Major:
        return MAJOR_TRIAD
    elif quality == Quality.Minor:
        return MINOR_TRIAD
    else:
        raise MatchException(quality)


def pentatonic_intervals(quality: Quality) -> IntervalSet:
    """Get the pentatonic scale for a chord quality."""
    if quality == Quality.Major:
        return MAJOR_PENTATONIC
    elif quality == Quality.Minor:
        return MINOR_PENTATONIC
    else:
        raise MatchException(quality)


def pitch_classes(root: int, intervals: Iterable[int]) -> Set[Chroma]:
    """Return the set of pitch classes reached from ``root`` by ``intervals``."""
    return {chroma(root + interval) for interval in intervals}


@dataclass(frozen=True)
class StringPos:
    """A position on the fretboard as a string and fret combination."""

    str_index: int
    """String index, 0 = high E through 5 = low E."""
    fret: int
    """Fret number, 0 = open string."""


def check_position(str_index: int, fret: int) -> None:
    """Validate a fretboard position.

    Raises:
        FretboardRangeError: If the string index is outside [0, 5] or the
            fret number is outside [0, 15].
    """
    if str_index < 0 or str_index >= constants.STRING_COUNT:
        raise FretboardRangeError(
            f"Invalid string index: {str_index}. Must be 0-{constants.STRING_COUNT - 1}"
        )
    if fret < 0 or fret > constants.MAX_FRET:
        raise FretboardRangeError(
            f"Invalid fret number: {fret}. Must be 0-{constants.MAX_FRET}"
        )


def note_at_position(str_index: int, fret: int) -> Chroma:
    """Calculate the pitch class sounding at a string and fret.

    Args:
        str_index: Guitar string index (0 = high E, 5 = low E).
        fret: Fret number (0 = open).

    Returns:
        The pitch class (0-11) at that position.

    Raises:
        FretboardRangeError: If the position is off the fretboard.
    """
    check_position(str_index, fret)
    return chroma(constants.STANDARD_TUNING[str_index] + fret)


def note_name_at_position(str_index: int, fret: int) -> str:
    """Get the sharp-notation note name at a string and fret."""
    return NOTE_NAMES[note_at_position(str_index, fret)]


def is_natural_note(str_index: int, fret: int) -> bool:
    """Check whether the note at a position is a natural (no sharp).

    Used to decide whether a note name label is drawn.
    """
    return note_at_position(str_index, fret) in NATURAL_CHROMAS


def interval_membership(
    str_index: int, fret: int, root: int, intervals: Iterable[int]
) -> bool:
    """Check whether the note at a position belongs to an interval set.

    Args:
        str_index: Guitar string index.
        fret: Fret number.
        root: Root pitch class of the set.
        intervals: Semitone offsets from the root; each is reduced mod 12.

    Returns:
        True if the distance from the root to the note is one of the intervals.
    """
    distance = chromatic_distance(root, note_at_position(str_index, fret))
    return distance in {chroma(interval) for interval in intervals}


def is_chord_note(str_index: int, fret: int, root: int, quality: Quality) -> bool:
    return interval_membership(str_index, fret, root, chord_intervals(quality))


def is_pentatonic_note(str_index: int, fret: int, root: int, quality: Quality) -> bool:
    return interval_membership(str_index, fret, root, pentatonic_intervals(quality))


def transpose(pattern: Sequence[int], from_root: int, to_root: int) -> List[int]:
    """Transpose a chord or scale pattern to a new root.

    Args:
        pattern: Pitch classes or intervals to move.
        from_root: Original root pitch class.
        to_root: Target root pitch class.

    Returns:
        A new list with every element shifted by the distance between roots.
    """
    distance = chromatic_distance(from_root, to_root)
    return [chroma(value + distance) for value in pattern]


def all_positions() -> Iterator[StringPos]:
    """Iterate every position on the fretboard, string by string."""
    for str_index in range(constants.STRING_COUNT):
        for fret in range(constants.MAX_FRET + 1):
            yield StringPos(str_index=str_index, fret=fret)


def positions_in(root: int, intervals: Iterable[int]) -> List[StringPos]:
    """List every fretboard position whose note belongs to an interval set."""
    interval_list = list(intervals)
    return [
        pos
        for pos in all_positions()
        if interval_membership(pos.str_index, pos.fret, root, interval_list)
    ]

from typing import List

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fretlab.base import FretboardRangeError
from fretlab.theory import (
    MAJOR_PENTATONIC,
    MAJOR_TRIAD,
    MINOR_PENTATONIC,
    MINOR_TRIAD,
    Quality,
    StringPos,
    chord_intervals,
    chroma,
    chromatic_distance,
    interval_membership,
    is_chord_note,
    is_natural_note,
    is_pentatonic_note,
    note_at_position,
    note_name_at_position,
    pentatonic_intervals,
    positions_in,
    transpose,
)
from tests.fretlab.hypo import configure_hypo

configure_hypo()

strings = st.integers(min_value=0, max_value=5)
chromas = st.integers(min_value=0, max_value=11)
patterns = st.lists(st.integers(min_value=-24, max_value=24), max_size=8)


@pytest.mark.parametrize(
    "str_index, fret, expected",
    [
        (0, 0, 4),
        (1, 0, 11),
        (2, 0, 7),
        (3, 0, 2),
        (4, 0, 9),
        (5, 0, 4),
        (0, 1, 5),
        (5, 8, 0),
        (4, 3, 0),
        (2, 15, 10),
    ],
)
def test_note_at_position(str_index: int, fret: int, expected: int) -> None:
    assert note_at_position(str_index, fret) == expected


@pytest.mark.parametrize(
    "str_index, fret, expected",
    [
        (0, 0, "E"),
        (1, 1, "C"),
        (2, 1, "G#"),
        (4, 1, "A#"),
        (3, 4, "F#"),
        (5, 12, "E"),
    ],
)
def test_note_name_at_position(str_index: int, fret: int, expected: str) -> None:
    assert note_name_at_position(str_index, fret) == expected


def test_note_names_never_flat() -> None:
    for str_index in range(6):
        for fret in range(16):
            assert "b" not in note_name_at_position(str_index, fret)


@pytest.mark.parametrize(
    "str_index, fret, message",
    [
        (6, 0, "Invalid string index: 6. Must be 0-5"),
        (-1, 0, "Invalid string index: -1. Must be 0-5"),
        (0, 16, "Invalid fret number: 16. Must be 0-15"),
        (0, -1, "Invalid fret number: -1. Must be 0-15"),
    ],
)
def test_out_of_range_positions_fail(str_index: int, fret: int, message: str) -> None:
    with pytest.raises(FretboardRangeError) as exc_info:
        note_at_position(str_index, fret)
    assert str(exc_info.value) == message
    # Range errors are also plain ValueErrors
    with pytest.raises(ValueError):
        is_natural_note(str_index, fret)


@given(strings, st.integers(min_value=0, max_value=3))
def test_octave_periodicity(str_index: int, fret: int) -> None:
    assert note_at_position(str_index, fret + 12) == note_at_position(str_index, fret)


def test_natural_notes() -> None:
    assert is_natural_note(0, 0)  # E
    assert is_natural_note(0, 1)  # F
    assert not is_natural_note(0, 2)  # F#
    assert is_natural_note(1, 1)  # C
    assert not is_natural_note(4, 1)  # A#


def test_chroma_is_non_negative() -> None:
    assert chroma(-1) == 11
    assert chroma(-13) == 11
    assert chroma(24) == 0
    assert chromatic_distance(9, 0) == 3
    assert chromatic_distance(0, 9) == 9


def test_interval_membership_example() -> None:
    # Low E string, 8th fret is C
    assert interval_membership(5, 8, 0, [0, 4, 7])
    assert not interval_membership(5, 9, 0, [0, 4, 7])


def test_interval_membership_reduces_intervals() -> None:
    # Open high E against a C root is a major third, also written 16
    assert interval_membership(0, 0, 0, [16])
    assert interval_membership(0, 0, 0, [-8])
    assert not interval_membership(0, 0, 0, [])


@given(strings, st.integers(min_value=0, max_value=15))
def test_root_is_always_member(str_index: int, fret: int) -> None:
    root = note_at_position(str_index, fret)
    assert interval_membership(str_index, fret, root, MAJOR_TRIAD)
    assert interval_membership(str_index, fret, root, MINOR_PENTATONIC)
    assert not interval_membership(str_index, fret, chroma(root + 1), MAJOR_TRIAD)


def test_chord_and_pentatonic_notes() -> None:
    # A minor: A C E
    assert is_chord_note(4, 0, 9, Quality.Minor)
    assert is_chord_note(1, 1, 9, Quality.Minor)
    assert not is_chord_note(2, 0, 9, Quality.Minor)
    # G is in the A minor pentatonic but not the A major pentatonic
    assert is_pentatonic_note(2, 0, 9, Quality.Minor)
    assert not is_pentatonic_note(2, 0, 9, Quality.Major)


def test_interval_tables() -> None:
    assert chord_intervals(Quality.Major) == MAJOR_TRIAD
    assert chord_intervals(Quality.Minor) == MINOR_TRIAD
    assert pentatonic_intervals(Quality.Major) == MAJOR_PENTATONIC
    assert pentatonic_intervals(Quality.Minor) == MINOR_PENTATONIC
    assert list(MINOR_PENTATONIC) == [0, 3, 5, 7, 10]
    assert len(MAJOR_PENTATONIC) == 5
    assert MINOR_TRIAD.members(9) == {9, 0, 4}


def test_quality_parse() -> None:
    assert Quality.parse("Major") == Quality.Major
    assert Quality.parse("minor") == Quality.Minor
    with pytest.raises(ValueError):
        Quality.parse("diminished")


def test_transpose_example() -> None:
    # C major triad to G
    assert transpose([0, 4, 7], 0, 7) == [7, 11, 2]
    # Down is up by the complement
    assert transpose([7, 11, 2], 7, 0) == [0, 4, 7]


@given(patterns, chromas)
def test_transpose_identity(pattern: List[int], root: int) -> None:
    assert transpose(pattern, root, root) == [chroma(v) for v in pattern]


@given(st.lists(chromas, max_size=8), chromas, chromas)
def test_transpose_round_trip(pattern: List[int], a: int, b: int) -> None:
    assert transpose(transpose(pattern, a, b), b, a) == pattern


def test_positions_in() -> None:
    assert positions_in(0, [0]) == [
        StringPos(0, 8),
        StringPos(1, 1),
        StringPos(1, 13),
        StringPos(2, 5),
        StringPos(3, 10),
        StringPos(4, 3),
        StringPos(4, 15),
        StringPos(5, 8),
    ]

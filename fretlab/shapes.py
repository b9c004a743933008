"""CAGED chord shapes and their placement on the fretboard.

The five CAGED shapes are moveable chord fingerings. Each has a natural
root (the open chord it is named after) and, for a target chord, a base
fret offset that slides the whole shape up the neck until its key-note
strings sound the target root. This module holds the shape library for
both qualities, the base position arithmetic, the per-string fret
resolution (including the open-versus-barre rule), overlap detection for
"show all shapes" mode, the hard-edged color bands used to draw a dot
shared by several shapes, and the pentatonic box windows.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from fractions import Fraction
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from fretlab.theory import Chroma, Quality, chromatic_distance

NOT_PLAYED = -1
"""Pattern and fret value for a string that is not played in a shape."""


@unique
class ShapeLetter(Enum):
    """The five CAGED shapes, in CAGED order.

    Each value is the pitch class of the open chord the shape is named after.
    """

    C = 0
    A = 9
    G = 7
    E = 4
    D = 2

    @property
    def natural_root(self) -> Chroma:
        return Chroma(self.value)

    @staticmethod
    def parse(name: str) -> ShapeLetter:
        """Look up a shape by its letter.

        Raises:
            ValueError: If the letter is not one of C, A, G, E, D.
        """
        try:
            return ShapeLetter[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown shape letter: {name}") from None


CAGED_ORDER: Tuple[ShapeLetter, ...] = tuple(ShapeLetter)
"""The shapes in the order they tile the neck: C, A, G, E, D."""


@dataclass(frozen=True)
class Shape:
    """One quality variant of a CAGED chord shape."""

    name: str
    """Display name, e.g. ``Am Shape``."""
    color: str
    """Display color token for dots belonging to this shape."""
    pattern: Tuple[int, ...]
    """Relative fret per string (high E first); -1 means not played."""
    fingers: Tuple[int, ...]
    """Finger per string (0 = open, 1-4 = fingers, -1 = not played)."""
    key_notes: Tuple[int, ...]
    """String indices that carry the chord root."""


SHAPE_LIBRARY: Dict[Quality, Dict[ShapeLetter, Shape]] = {
    Quality.Major: {
        ShapeLetter.C: Shape(
            "C Shape", "#FF6B6B", (0, 1, 0, 2, 3, -1), (0, 1, 0, 2, 3, -1), (4,)
        ),
        ShapeLetter.A: Shape(
            "A Shape", "#4ECDC4", (0, 2, 2, 2, 0, -1), (0, 4, 3, 2, 0, -1), (4,)
        ),
        ShapeLetter.G: Shape(
            "G Shape", "#45B7D1", (3, 0, 0, 0, 2, 3), (4, -1, 0, 0, 2, 3), (0, 5)
        ),
        ShapeLetter.E: Shape(
            "E Shape", "#96CEB4", (0, 0, 1, 2, 2, 0), (0, 0, 1, 3, 2, 0), (0, 5)
        ),
        ShapeLetter.D: Shape(
            "D Shape", "#FECA57", (2, 3, 2, 0, -1, -1), (2, 3, 1, 0, -1, -1), (3,)
        ),
    },
    Quality.Minor: {
        ShapeLetter.C: Shape(
            "Cm Shape", "#FF6B6B", (-1, 1, 0, 1, 3, -1), (-1, 2, 0, 1, 4, -1), (4,)
        ),
        ShapeLetter.A: Shape(
            "Am Shape", "#4ECDC4", (0, 1, 2, 2, 0, -1), (0, 1, 3, 2, 0, -1), (4,)
        ),
        ShapeLetter.G: Shape(
            "Gm Shape", "#45B7D1", (3, -1, 0, 0, 1, 3), (4, 0, 0, 0, 1, 3), (0, 5)
        ),
        ShapeLetter.E: Shape(
            "Em Shape", "#96CEB4", (0, 0, 0, 2, 2, 0), (0, 0, 0, 2, 3, 0), (0, 5)
        ),
        ShapeLetter.D: Shape(
            "Dm Shape", "#FECA57", (1, 3, 2, 0, -1, -1), (1, 3, 2, 0, -1, -1), (3,)
        ),
    },
}
"""Every CAGED shape, by quality then letter."""


def get_shape(letter: ShapeLetter, quality: Quality = Quality.Major) -> Shape:
    return SHAPE_LIBRARY[quality][letter]


def caged_sequence(chord: ShapeLetter) -> List[ShapeLetter]:
    """Rotate the CAGED order so it starts at the chord's own shape.

    The chord's natural shape sits lowest on the neck, and the others
    follow it in CAGED order.
    """
    start = CAGED_ORDER.index(chord)
    return list(CAGED_ORDER[start:] + CAGED_ORDER[:start])


def shape_base_position(letter: ShapeLetter, target: int) -> int:
    """Calculate how far a shape moves up the neck to play a target root.

    Args:
        letter: The shape to move.
        target: Pitch class of the chord root to play.

    Returns:
        The base fret offset, always in [0, 11].
    """
    return chromatic_distance(letter.natural_root, target)


def shape_positions(target: int) -> Dict[ShapeLetter, int]:
    """Calculate the base position of every shape for a target root."""
    return {letter: shape_base_position(letter, target) for letter in CAGED_ORDER}


def fret_for_shape_at_string(
    pattern: Sequence[int], str_index: int, base_position: int
) -> int:
    """Resolve the absolute fret a shape frets on one string.

    A pattern offset of 0 means different things depending on where the
    shape sits: at the nut it is an open string, anywhere else the index
    finger barres the string at the base position.

    Args:
        pattern: The shape's relative fret pattern.
        str_index: Guitar string index.
        base_position: Base fret offset of the shape.

    Returns:
        The fret to play, or -1 if the string is not played.
    """
    if str_index < 0 or str_index >= len(pattern):
        return NOT_PLAYED
    offset = pattern[str_index]
    if offset == NOT_PLAYED:
        return NOT_PLAYED
    if offset == 0 and base_position == 0:
        return 0
    if offset == 0 and base_position > 0:
        return base_position
    return offset + base_position


def should_show_chord_dot(
    pattern: Sequence[int], str_index: int, fret: int, base_position: int
) -> bool:
    """Check whether a shape puts a fretted dot at a position.

    Open strings never count as a dot.
    """
    shape_fret = fret_for_shape_at_string(pattern, str_index, base_position)
    return shape_fret == fret and shape_fret > 0


def shapes_overlapping_position(
    letters: Iterable[ShapeLetter],
    base_positions: Mapping[ShapeLetter, int],
    str_index: int,
    fret: int,
    quality: Quality = Quality.Major,
) -> List[ShapeLetter]:
    """Find every shape that frets a given position.

    Args:
        letters: Shapes to consider, in display order.
        base_positions: Base fret offset for each shape.
        str_index: Guitar string index.
        fret: Fret number.
        quality: Which variant of the shapes to use.

    Returns:
        The matching shapes, in the order given by ``letters``.
    """
    shapes = SHAPE_LIBRARY[quality]
    return [
        letter
        for letter in letters
        if should_show_chord_dot(
            shapes[letter].pattern, str_index, fret, base_positions[letter]
        )
    ]


@dataclass(frozen=True)
class ColorBand:
    """A hard-edged band of one color across a dot.

    Bands are fractions of the dot width; rendering turns them into
    whatever drawing primitive it has.
    """

    color: str
    start: Fraction
    end: Fraction


def blend_style(
    letters: Sequence[ShapeLetter], quality: Quality = Quality.Major
) -> List[ColorBand]:
    """Split a dot into equal hard-edged bands, one per shape.

    One shape gives a single solid band, two give a 50/50 split and N
    give N bands ``[i/N, (i+1)/N]`` in shape order. No shapes gives no
    bands.
    """
    shapes = SHAPE_LIBRARY[quality]
    count = len(letters)
    return [
        ColorBand(
            color=shapes[letter].color,
            start=Fraction(i, count),
            end=Fraction(i + 1, count),
        )
        for i, letter in enumerate(letters)
    ]


@dataclass(frozen=True)
class PentatonicBox:
    """Relative fret window where pentatonic dots are shown for a shape."""

    box: int
    """Pentatonic box number (1-5)."""
    start_fret: int
    """First fret of the window, relative to the shape's base position."""
    end_fret: int
    """Last fret of the window, relative to the shape's base position."""
    name: str


@dataclass(frozen=True)
class FretWindow:
    """An inclusive range of absolute frets."""

    start_fret: int
    end_fret: int

    def __contains__(self, fret: int) -> bool:
        return self.start_fret <= fret <= self.end_fret


PENTATONIC_BOXES: Dict[Quality, Dict[ShapeLetter, PentatonicBox]] = {
    Quality.Major: {
        ShapeLetter.C: PentatonicBox(1, -1, 3, "C Major Shape"),
        ShapeLetter.A: PentatonicBox(2, -1, 2, "A Major Shape"),
        ShapeLetter.G: PentatonicBox(3, -1, 3, "G Major Shape"),
        ShapeLetter.E: PentatonicBox(4, -1, 2, "E Major Shape"),
        ShapeLetter.D: PentatonicBox(5, -1, 3, "D Major Shape"),
    },
    Quality.Minor: {
        ShapeLetter.C: PentatonicBox(1, 0, 4, "C Minor Shape"),
        ShapeLetter.A: PentatonicBox(2, -1, 3, "A Minor Shape"),
        ShapeLetter.G: PentatonicBox(3, 0, 3, "G Minor Shape"),
        ShapeLetter.E: PentatonicBox(4, -1, 3, "E Minor Shape"),
        ShapeLetter.D: PentatonicBox(5, -1, 3, "D Minor Shape"),
    },
}


def pentatonic_box_window(
    letter: ShapeLetter, quality: Quality, base_position: int
) -> FretWindow:
    """Place a shape's pentatonic box on the neck.

    The relative window is shifted by the base position and its start is
    clamped to the nut.
    """
    box = PENTATONIC_BOXES[quality][letter]
    return FretWindow(
        start_fret=max(0, base_position + box.start_fret),
        end_fret=base_position + box.end_fret,
    )


def is_in_pentatonic_box(
    letter: ShapeLetter, quality: Quality, base_position: int, fret: int
) -> bool:
    return fret in pentatonic_box_window(letter, quality, base_position)

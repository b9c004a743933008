"""Diatonic triads of the major and minor scales.

Builds the seven triads obtained by stacking thirds on each degree of a
seven-note scale, for the scale-chord explorer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Dict, List, Tuple

from fretlab.base import MatchException
from fretlab.theory import NOTE_NAMES, Chroma, chroma


@unique
class TriadQuality(Enum):
    """Quality of a triad built from scale tones."""

    Major = "major"
    Minor = "minor"
    Diminished = "diminished"
    Augmented = "augmented"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


TRIAD_INTERVALS: Dict[TriadQuality, Tuple[int, ...]] = {
    TriadQuality.Major: (0, 4, 7),
    TriadQuality.Minor: (0, 3, 7),
    TriadQuality.Diminished: (0, 3, 6),
    TriadQuality.Augmented: (0, 4, 8),
}

TRIAD_FORMULAS: Dict[TriadQuality, str] = {
    TriadQuality.Major: "1-3-5",
    TriadQuality.Minor: "1-♭3-5",
    TriadQuality.Diminished: "1-♭3-♭5",
    TriadQuality.Augmented: "1-3-♯5",
}

INTERVAL_NAMES: Tuple[str, ...] = (
    "Root",
    "Minor 2nd",
    "Major 2nd",
    "Minor 3rd",
    "Major 3rd",
    "Perfect 4th",
    "Tritone (Dim 5th)",
    "Perfect 5th",
    "Augmented 5th",
    "Major 6th",
    "Minor 7th",
    "Major 7th",
)
"""Interval name for each semitone distance 0-11."""

_ROMAN = ("I", "II", "III", "IV", "V", "VI", "VII")


def interval_name(semitones: int) -> str:
    """Name the interval spanning a number of semitones (reduced mod 12)."""
    return INTERVAL_NAMES[chroma(semitones)]


@unique
class ScaleKind(Enum):
    Major = "major"
    NaturalMinor = "natural-minor"
    HarmonicMinor = "harmonic-minor"
    MelodicMinor = "melodic-minor"


@dataclass(frozen=True)
class DiatonicScale:
    """A seven-note scale with the triad quality on each degree."""

    kind: ScaleKind
    name: str
    intervals: Tuple[int, ...]
    """Semitone offsets of the seven degrees from the root."""
    qualities: Tuple[TriadQuality, ...]
    """Triad quality on each degree, I through VII."""
    description: str


_MAJ = TriadQuality.Major
_MIN = TriadQuality.Minor
_DIM = TriadQuality.Diminished
_AUG = TriadQuality.Augmented

SCALES: List[DiatonicScale] = [
    DiatonicScale(
        ScaleKind.Major,
        "Major Scale",
        (0, 2, 4, 5, 7, 9, 11),
        (_MAJ, _MIN, _MIN, _MAJ, _MAJ, _MIN, _DIM),
        "Happy, bright sounding scale - foundation of Western music theory.",
    ),
    DiatonicScale(
        ScaleKind.NaturalMinor,
        "Natural Minor Scale",
        (0, 2, 3, 5, 7, 8, 10),
        (_MIN, _DIM, _MAJ, _MIN, _MIN, _MAJ, _MAJ),
        "Relative minor scale - darker, more melancholic sound.",
    ),
    DiatonicScale(
        ScaleKind.HarmonicMinor,
        "Harmonic Minor Scale",
        (0, 2, 3, 5, 7, 8, 11),
        (_MIN, _DIM, _AUG, _MIN, _MAJ, _MAJ, _DIM),
        "Exotic sound with raised 7th degree - creates strong resolution.",
    ),
    DiatonicScale(
        ScaleKind.MelodicMinor,
        "Melodic Minor Scale",
        (0, 2, 3, 5, 7, 9, 11),
        (_MIN, _MIN, _AUG, _MAJ, _MAJ, _DIM, _DIM),
        "Jazz scale with raised 6th and 7th degrees - smooth ascending sound.",
    ),
]

SCALE_LOOKUP: Dict[ScaleKind, DiatonicScale] = {s.kind: s for s in SCALES}


def roman_numeral(degree: int, quality: TriadQuality) -> str:
    """Roman numeral for a scale degree (1-7) carrying a triad quality."""
    numeral = _ROMAN[degree - 1]
    if quality == TriadQuality.Major:
        return numeral
    elif quality == TriadQuality.Minor:
        return numeral.lower()
    elif quality == TriadQuality.Diminished:
        return numeral.lower() + "°"
    elif quality == TriadQuality.Augmented:
        return numeral + "+"
    else:
        raise MatchException(quality)


@dataclass(frozen=True)
class ChordInScale:
    """One diatonic triad of a scale."""

    degree: int
    """Scale degree, 1 through 7."""
    roman_numeral: str
    quality: TriadQuality
    root: Chroma
    root_name: str
    chord_name: str
    """Display name, e.g. ``D Minor``."""
    formula: str
    chord_intervals: Tuple[int, ...]
    interval_names: Tuple[str, ...]

    @property
    def notes(self) -> List[Chroma]:
        """The triad's pitch classes, root first."""
        return [chroma(self.root + i) for i in self.chord_intervals]


def diatonic_triads(key: int, kind: ScaleKind) -> List[ChordInScale]:
    """Build the seven triads of a scale.

    Args:
        key: Pitch class of the scale root.
        kind: Which scale to harmonize.

    Returns:
        The triads on degrees I through VII.
    """
    scale = SCALE_LOOKUP[kind]
    triads: List[ChordInScale] = []
    for index, (offset, quality) in enumerate(zip(scale.intervals, scale.qualities)):
        degree = index + 1
        root = chroma(key + offset)
        intervals = TRIAD_INTERVALS[quality]
        triads.append(
            ChordInScale(
                degree=degree,
                roman_numeral=roman_numeral(degree, quality),
                quality=quality,
                root=root,
                root_name=NOTE_NAMES[root],
                chord_name=f"{NOTE_NAMES[root]} {quality.display_name}",
                formula=TRIAD_FORMULAS[quality],
                chord_intervals=intervals,
                interval_names=tuple(interval_name(i) for i in intervals),
            )
        )
    return triads

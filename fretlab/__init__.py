"""Guitar fretboard theory and practice timing."""

from fretlab.base import FretboardRangeError
from fretlab.rhythm import RhythmNote, RhythmPattern, schedule_subdivisions
from fretlab.scheduler import BeatClock, ManualTimer, Metronome, ThreadTimer
from fretlab.shapes import (
    ShapeLetter,
    blend_style,
    fret_for_shape_at_string,
    pentatonic_box_window,
    shape_base_position,
    shapes_overlapping_position,
)
from fretlab.theory import (
    Quality,
    interval_membership,
    is_natural_note,
    note_at_position,
    note_name_at_position,
    transpose,
)

__all__ = [
    "BeatClock",
    "FretboardRangeError",
    "ManualTimer",
    "Metronome",
    "Quality",
    "RhythmNote",
    "RhythmPattern",
    "ShapeLetter",
    "ThreadTimer",
    "blend_style",
    "fret_for_shape_at_string",
    "interval_membership",
    "is_natural_note",
    "note_at_position",
    "note_name_at_position",
    "pentatonic_box_window",
    "schedule_subdivisions",
    "shape_base_position",
    "shapes_overlapping_position",
    "transpose",
]

"""Constants for fretlab.

Fretboard dimensions, tempo bounds, click sounds and quiz limits.
"""

from __future__ import annotations

from fractions import Fraction

# Fretboard

STRING_COUNT = 6
"""Number of strings on a standard guitar."""

MAX_FRET = 15
"""Highest fret number (frets run 0 to 15 inclusive)."""

CHROMATIC_OCTAVE = 12
"""Number of semitones in an octave."""

STANDARD_TUNING = (4, 11, 7, 2, 9, 4)
"""Open string pitch classes from the high E string (index 0) to the low E string."""

STRING_NAMES = ("E", "B", "G", "D", "A", "E")
"""String names for display, in tuning order."""

FRET_MARKERS = (3, 5, 7, 9, 12)
"""Frets carrying position inlays."""

# Tempo

MIN_BPM = 40
MAX_BPM = 240
DEFAULT_BPM = 120

BEATS_PER_MEASURE = 4
"""Beats in one measure of 4/4, also the number of rhythm panels."""

DURATION_TOLERANCE = Fraction(1, 1000)
"""Allowed error when float note durations are checked against one beat."""

# Clicks

NOTE_CLICK_FREQUENCY = 1000.0
"""Frequency of a subdivision click in Hz."""

METRONOME_CLICK_FREQUENCY = 800.0
"""Frequency of a metronome beat click in Hz."""

NOTE_CLICK_DURATION = 0.01
"""Duration of a subdivision click in seconds."""

METRONOME_CLICK_DURATION = 0.02
"""Duration of a metronome click in seconds."""

NOTE_CLICK_VOLUME = 0.3
METRONOME_CLICK_VOLUME = 0.4

DEFAULT_MIDI_CHANNEL = 9
"""Zero-based MIDI channel for clicks (channel 10, percussion)."""

# Quiz

MIN_QUESTION_COUNT = 5
MAX_QUESTION_COUNT = 50
DEFAULT_QUESTION_COUNT = 10

QUIZ_PREFERENCES_KEY = "caged-quiz-preferences"
"""Storage key (and default file stem) for quiz preferences."""

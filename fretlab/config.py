"""Application configuration and stored quiz preferences.

``Config`` collects the settings the command line can change. Quiz
preferences are persisted as a small JSON file using the same camelCase
keys as the web app's local storage record, so a preferences file can be
exchanged between the two.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from logging import Logger
from pathlib import Path
from typing import Optional

from fretlab import constants
from fretlab.quiz import QuizPreferences
from fretlab.scheduler import clamp_bpm


@dataclass(frozen=True)
class Config:
    bpm: float
    """Tempo for the metronome and rhythm trainer."""
    midi_port: Optional[str]
    """MIDI output port for clicks; None logs clicks instead."""
    midi_channel: int
    """Zero-based MIDI channel for clicks."""
    preferences_path: Path
    quiz: QuizPreferences


def default_preferences_path() -> Path:
    return Path.home() / ".fretlab" / f"{constants.QUIZ_PREFERENCES_KEY}.json"


def init_config(
    bpm: float = constants.DEFAULT_BPM,
    midi_port: Optional[str] = None,
    midi_channel: int = constants.DEFAULT_MIDI_CHANNEL,
    preferences_path: Optional[Path] = None,
    logger: Optional[Logger] = None,
) -> Config:
    """Build a configuration, loading quiz preferences from disk.

    Args:
        bpm: Tempo, clamped to the supported range.
        midi_port: Name of the MIDI output port, if any.
        midi_channel: Zero-based MIDI channel for clicks.
        preferences_path: Preference file; defaults to one in the home directory.
        logger: Where to report defaulted values.

    Returns:
        The configuration.
    """
    path = preferences_path if preferences_path is not None else default_preferences_path()
    return Config(
        bpm=clamp_bpm(bpm),
        midi_port=midi_port,
        midi_channel=midi_channel,
        preferences_path=path,
        quiz=load_preferences(path, logger),
    )


def load_preferences(path: Path, logger: Optional[Logger] = None) -> QuizPreferences:
    """Load quiz preferences, falling back to defaults.

    A missing, unreadable or malformed file never fails; the defaults are
    returned and the problem is logged.
    """
    log = logger if logger is not None else logging.getLogger(__name__)
    if not path.exists():
        log.debug("No quiz preferences at %s, using defaults", path)
        return QuizPreferences.default()
    try:
        with open(path) as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        log.warning("Failed to read quiz preferences from %s: %s", path, e)
        return QuizPreferences.default()
    return QuizPreferences.parse(raw, log)


def save_preferences(
    path: Path, prefs: QuizPreferences, logger: Optional[Logger] = None
) -> None:
    """Write quiz preferences, creating the parent directory if needed.

    Raises:
        OSError: If the file cannot be written.
    """
    log = logger if logger is not None else logging.getLogger(__name__)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(prefs.to_json_dict(), f, indent=2)
    log.info("Saved quiz preferences to %s", path)

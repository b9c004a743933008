"""Rhythm trainer: four one-beat panels played in a loop.

The game owns a four-beat ``BeatClock``. On every beat it schedules the
clicks of that beat's panel through a ``ClickSink``, and in random change
mode every completed measure swaps one panel for a random pattern.
"""

from __future__ import annotations

import logging
from logging import Logger
from random import Random
from typing import List, Optional, override

from fretlab import constants
from fretlab.base import Closeable, Resettable
from fretlab.clicks import NOTE_CLICK, ClickSink
from fretlab.rhythm import (
    DEFAULT_PATTERN,
    RhythmPattern,
    audible_offsets_ms,
    random_panel_index,
    random_panels,
    random_pattern,
    schedule_subdivisions,
)
from fretlab.scheduler import BeatClock


def default_panels() -> List[RhythmPattern]:
    """One quarter note per beat."""
    return [DEFAULT_PATTERN] * constants.BEATS_PER_MEASURE


class RhythmGame(Resettable, Closeable):
    def __init__(
        self,
        clock: BeatClock,
        sink: ClickSink,
        rng: Optional[Random] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        if clock.beats_per_cycle != constants.BEATS_PER_MEASURE:
            raise ValueError(
                f"Rhythm game needs a {constants.BEATS_PER_MEASURE} beat clock"
            )
        self._clock = clock
        self._sink = sink
        self._rng = rng if rng is not None else Random()
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._panels = default_panels()
        self._random_change_mode = False
        self._play_audio = True
        clock.add_cycle_listener(self._on_cycle_complete)
        clock.add_beat_listener(self._on_beat)

    @property
    def panels(self) -> List[RhythmPattern]:
        return list(self._panels)

    @property
    def is_playing(self) -> bool:
        return self._clock.is_running

    @property
    def active_panel(self) -> Optional[int]:
        """Index of the panel for the current beat, or None when stopped."""
        return self._clock.current_beat

    @property
    def bpm(self) -> float:
        return self._clock.bpm

    @property
    def random_change_mode(self) -> bool:
        return self._random_change_mode

    @property
    def play_audio(self) -> bool:
        return self._play_audio

    def start(self) -> None:
        self._clock.start()

    def stop(self) -> None:
        self._clock.stop()
        self._sink.clear()

    def toggle(self) -> None:
        if self._clock.is_running:
            self.stop()
        else:
            self.start()

    def set_bpm(self, bpm: float) -> float:
        return self._clock.set_bpm(bpm)

    def set_pattern(self, index: int, pattern: RhythmPattern) -> None:
        """Assign a pattern to one panel.

        Raises:
            ValueError: If the panel index is outside [0, 3].
        """
        if index < 0 or index >= len(self._panels):
            raise ValueError(f"Invalid panel index: {index}")
        self._panels[index] = pattern
        self._logger.debug("Panel %d set to %s", index, pattern.id)

    def randomize_all(self) -> None:
        self._panels = random_panels(self._rng)
        self._logger.info("Randomized panels: %s", [p.id for p in self._panels])

    def set_random_change_mode(self, enabled: bool) -> None:
        self._random_change_mode = enabled

    def set_play_audio(self, enabled: bool) -> None:
        self._play_audio = enabled
        if not enabled:
            self._sink.clear()

    @override
    def reset(self) -> None:
        """Stop and return every panel to a quarter note."""
        self.stop()
        self._panels = default_panels()

    @override
    def close(self) -> None:
        self.stop()
        self._clock.close()
        self._sink.close()

    def _on_beat(self, beat: int) -> None:
        if not self._play_audio:
            return
        pattern = self._panels[beat]
        scheduled = schedule_subdivisions(pattern, self._clock.period_ms)
        self._sink.play(audible_offsets_ms(scheduled), NOTE_CLICK)

    def _on_cycle_complete(self) -> None:
        if not self._random_change_mode:
            return
        index = random_panel_index(self._rng)
        pattern = random_pattern(self._rng)
        self._panels[index] = pattern
        self._logger.info("Panel %d changed to %s", index, pattern.id)

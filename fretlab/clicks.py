"""Click output for the metronome and rhythm trainer.

Clicks are short percussion notes. A ``ClickSink`` receives the offsets
(in milliseconds after "now") of the clicks for one beat and sounds them
at those times. ``MidiClickSink`` sends them to a MIDI output port from a
worker thread; ``LogClickSink`` just logs them. ``render_measure`` writes
a measure of rhythm panels to a standard MIDI file instead.
"""

from __future__ import annotations

import heapq
import logging
import math
import threading
import time
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from fractions import Fraction
from logging import Logger
from threading import Event, Thread
from typing import List, Optional, Sequence, Tuple, override

import mido
from mido.frozen import FrozenMessage
from mido.ports import BaseOutput

from fretlab import constants
from fretlab.base import Closeable
from fretlab.rhythm import RhythmPattern, schedule_subdivisions
from fretlab.scheduler import clamp_bpm


@dataclass(frozen=True)
class Click:
    """The sound of one click."""

    frequency: float
    """Pitch in Hz."""
    duration: float
    """Length in seconds."""
    volume: float
    """Loudness in [0, 1]."""

    @property
    def note(self) -> int:
        """The MIDI note nearest to the click frequency."""
        note = round(69 + 12 * math.log2(self.frequency / 440))
        return max(0, min(127, note))

    @property
    def velocity(self) -> int:
        return max(1, min(127, round(self.volume * 127)))


NOTE_CLICK = Click(
    constants.NOTE_CLICK_FREQUENCY,
    constants.NOTE_CLICK_DURATION,
    constants.NOTE_CLICK_VOLUME,
)
"""Click sounded for each note of a rhythm pattern."""

METRONOME_CLICK = Click(
    constants.METRONOME_CLICK_FREQUENCY,
    constants.METRONOME_CLICK_DURATION,
    constants.METRONOME_CLICK_VOLUME,
)
"""Click sounded on each metronome beat."""


def click_on(click: Click, channel: int) -> FrozenMessage:
    return FrozenMessage(
        "note_on", channel=channel, note=click.note, velocity=click.velocity
    )


def click_off(click: Click, channel: int) -> FrozenMessage:
    return FrozenMessage("note_off", channel=channel, note=click.note, velocity=0)


class ClickSink(Closeable, metaclass=ABCMeta):
    """Sounds clicks at offsets from the moment they are played."""

    @abstractmethod
    def play(self, offsets_ms: Sequence[float], click: Click = NOTE_CLICK) -> None:
        """Sound ``click`` at each offset, in milliseconds from now."""
        raise NotImplementedError()

    @abstractmethod
    def clear(self) -> None:
        """Drop every click that has not sounded yet."""
        raise NotImplementedError()

    def click(self, click: Click = METRONOME_CLICK) -> None:
        """Sound a single click immediately."""
        self.play([0.0], click)


class LogClickSink(ClickSink):
    """A sink that logs clicks instead of sounding them."""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    @override
    def play(self, offsets_ms: Sequence[float], click: Click = NOTE_CLICK) -> None:
        for offset in offsets_ms:
            self._logger.info("Click %.0fHz at +%.1fms", click.frequency, offset)

    @override
    def clear(self) -> None:
        pass

    @override
    def close(self) -> None:
        pass


# Pending entry: (due time, sequence, message, hold seconds or None for a release)
_Pending = Tuple[float, int, FrozenMessage, Optional[float]]


class MidiClickSink(ClickSink):
    """Sends clicks as note on/off pairs to a MIDI output port.

    A worker thread keeps a heap of pending messages ordered by due time
    and waits on an event until the next one is due or a new click is
    played. Note offs for clicks that already sounded survive ``clear``
    so no note is left hanging.
    """

    @classmethod
    def open(
        cls,
        out_port_name: str,
        channel: int = constants.DEFAULT_MIDI_CHANNEL,
        logger: Optional[Logger] = None,
    ) -> MidiClickSink:
        """Open a MIDI output port by name and send clicks to it."""
        out_port = mido.open_output(out_port_name)
        return cls(out_port, channel=channel, logger=logger)

    def __init__(
        self,
        out_port: BaseOutput,
        channel: int = constants.DEFAULT_MIDI_CHANNEL,
        logger: Optional[Logger] = None,
    ) -> None:
        self._out_port = out_port
        self._channel = channel
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._pending: List[_Pending] = []
        self._seq = 0
        self._wake = Event()
        self._halt = Event()
        self._thread = Thread(target=self._run, name="fretlab-clicks", daemon=True)
        self._thread.start()

    @override
    def play(self, offsets_ms: Sequence[float], click: Click = NOTE_CLICK) -> None:
        now = time.monotonic()
        with self._lock:
            for offset in offsets_ms:
                self._push(now + offset / 1000, click_on(click, self._channel), click.duration)
        self._wake.set()

    @override
    def clear(self) -> None:
        with self._lock:
            # Only releases of clicks that already sounded remain.
            self._pending = [entry for entry in self._pending if entry[3] is None]
            heapq.heapify(self._pending)
        self._wake.set()
        self._logger.debug("Cleared pending clicks")

    @override
    def close(self) -> None:
        self._halt.set()
        self._wake.set()
        if self._thread is not threading.current_thread():
            self._thread.join()
        self._out_port.reset()
        self._out_port.close()

    def _push(self, due: float, msg: FrozenMessage, hold: Optional[float]) -> None:
        heapq.heappush(self._pending, (due, self._seq, msg, hold))
        self._seq += 1

    def _take_due(self) -> Tuple[List[FrozenMessage], Optional[float]]:
        due: List[FrozenMessage] = []
        with self._lock:
            now = time.monotonic()
            while self._pending and self._pending[0][0] <= now:
                _, _, msg, hold = heapq.heappop(self._pending)
                due.append(msg)
                if hold is not None:
                    release = FrozenMessage(
                        "note_off", channel=msg.channel, note=msg.note, velocity=0
                    )
                    self._push(now + hold, release, None)
            next_due = self._pending[0][0] if self._pending else None
        return due, next_due

    def _send(self, msg: FrozenMessage) -> None:
        try:
            self._logger.debug("Sending click message: %s", msg)
            self._out_port.send(msg)
        except Exception:
            self._logger.exception("Failed to send click message %s", msg)

    def _run(self) -> None:
        while not self._halt.is_set():
            due, next_due = self._take_due()
            for msg in due:
                self._send(msg)
            if due:
                continue
            timeout = None if next_due is None else max(0.0, next_due - time.monotonic())
            self._wake.wait(timeout=timeout)
            self._wake.clear()


def render_measure(
    panels: Sequence[RhythmPattern],
    bpm: float,
    filepath: str,
    channel: int = constants.DEFAULT_MIDI_CHANNEL,
    click: Click = NOTE_CLICK,
) -> mido.MidiFile:
    """Render one measure of rhythm panels to a MIDI file.

    Each panel fills one beat. Every audible note becomes a click; rests
    are silent.

    Args:
        panels: One pattern per beat.
        bpm: Tempo, clamped to the supported range.
        filepath: Path where to save the MIDI file.
        channel: MIDI channel for the clicks.
        click: Click sound to use.

    Returns:
        The MIDI file that was saved.
    """
    ticks_per_beat = 480
    tempo = mido.bpm2tempo(clamp_bpm(bpm))
    midi_file = mido.MidiFile(type=0, ticks_per_beat=ticks_per_beat)
    track = mido.MidiTrack()
    midi_file.tracks.append(track)
    track.append(mido.MetaMessage("set_tempo", tempo=tempo, time=0))

    click_ticks = max(1, round(mido.second2tick(click.duration, ticks_per_beat, tempo)))
    events: List[Tuple[int, int, FrozenMessage]] = []
    for beat, panel in enumerate(panels):
        for scheduled in schedule_subdivisions(panel, Fraction(1)):
            if scheduled.is_rest:
                continue
            start = int((beat + scheduled.offset) * ticks_per_beat)
            # Note offs sort before note ons at the same tick.
            events.append((start, 1, click_on(click, channel)))
            events.append((start + click_ticks, 0, click_off(click, channel)))
    events.sort(key=lambda e: (e[0], e[1]))

    last_tick = 0
    for tick, _, msg in events:
        track.append(msg.copy(time=tick - last_tick))
        last_tick = tick

    midi_file.save(filepath)
    return midi_file

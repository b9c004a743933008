"""BPM-driven beat scheduling.

A ``BeatClock`` cycles through the beats of a measure at a tempo, driven by
a ``TimerDriver`` that fires a periodic callback. There is at most one live
driver run per clock: every start, restart or tempo change cancels the
previous run before installing a new one, and each run carries a
generation number so a callback from a cancelled run that is already in
flight is dropped instead of firing a ghost tick.

Two drivers are provided: ``ThreadTimer`` runs the period on a daemon
thread waiting on a ``threading.Event`` (so cancellation is immediate),
and ``ManualTimer`` fires only when told to, for deterministic tests and
for hosts with their own event loop.
"""

from __future__ import annotations

import logging
import threading
from abc import ABCMeta, abstractmethod
from logging import Logger
from threading import Event, RLock, Thread
from typing import Callable, List, Optional, override

from fretlab import constants
from fretlab.base import Closeable

BeatListener = Callable[[int], None]
"""Called with the new beat index whenever a beat starts."""

CycleListener = Callable[[], None]
"""Called when the last beat of a cycle wraps back to beat 0."""


def clamp_bpm(bpm: float) -> float:
    """Clamp a tempo to the supported range instead of rejecting it."""
    return max(constants.MIN_BPM, min(constants.MAX_BPM, bpm))


def is_valid_bpm(bpm: float) -> bool:
    return constants.MIN_BPM <= bpm <= constants.MAX_BPM


def period_ms(bpm: float) -> float:
    """Length of one beat in milliseconds."""
    return 60000 / bpm


class TimerDriver(Closeable, metaclass=ABCMeta):
    """Drives a single periodic callback.

    Starting a driver that is already running replaces the previous
    callback; drivers never run two periods at once.
    """

    @abstractmethod
    def start(self, period_ms: float, callback: Callable[[], None]) -> None:
        """Invoke ``callback`` every ``period_ms`` milliseconds until cancelled.

        The first invocation happens one full period after this call.
        """
        raise NotImplementedError()

    @abstractmethod
    def cancel(self) -> None:
        """Stop invoking the callback. Safe to call when not running."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def running(self) -> bool:
        raise NotImplementedError()

    @override
    def close(self) -> None:
        self.cancel()


class ManualTimer(TimerDriver):
    """A driver that fires only when ``fire`` is called."""

    def __init__(self) -> None:
        self._callback: Optional[Callable[[], None]] = None
        self._period_ms: Optional[float] = None
        self.starts = 0
        """Number of times the driver was started."""
        self.cancels = 0
        """Number of times a running driver was cancelled."""

    @property
    def period_ms(self) -> Optional[float]:
        """Period of the current run, or None if not running."""
        return self._period_ms

    @property
    @override
    def running(self) -> bool:
        return self._callback is not None

    @override
    def start(self, period_ms: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self._callback = callback
        self._period_ms = period_ms
        self.starts += 1

    @override
    def cancel(self) -> None:
        if self._callback is not None:
            self.cancels += 1
        self._callback = None
        self._period_ms = None

    def fire(self, times: int = 1) -> None:
        """Elapse ``times`` periods, stopping early if the run is cancelled."""
        for _ in range(times):
            callback = self._callback
            if callback is None:
                break
            callback()


class ThreadTimer(TimerDriver):
    """A driver that runs its period on a daemon thread."""

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._halt: Optional[Event] = None
        self._threads: List[Thread] = []

    @property
    @override
    def running(self) -> bool:
        with self._lock:
            return self._halt is not None

    @override
    def start(self, period_ms: float, callback: Callable[[], None]) -> None:
        interval = period_ms / 1000
        halt = Event()
        thread = Thread(
            target=self._run,
            args=(interval, callback, halt),
            name="fretlab-timer",
            daemon=True,
        )
        with self._lock:
            if self._halt is not None:
                self._halt.set()
            self._halt = halt
            # Cancelled runs exit on their own; keep them to join on close.
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
            thread.start()
        self._logger.debug("Timer started with interval %.4fs", interval)

    @override
    def cancel(self) -> None:
        with self._lock:
            if self._halt is not None:
                self._halt.set()
                self._logger.debug("Timer cancelled")
            self._halt = None

    @override
    def close(self) -> None:
        with self._lock:
            threads = self._threads
            self._threads = []
        self.cancel()
        for thread in threads:
            if thread is not threading.current_thread():
                thread.join()

    def _run(self, interval: float, callback: Callable[[], None], halt: Event) -> None:
        while not halt.wait(timeout=interval):
            try:
                callback()
            except Exception:
                self._logger.exception("Timer callback failed")


class BeatClock(Closeable):
    """A repeating cycle of beats synchronized to a tempo.

    The clock is created stopped with no current beat. ``start`` sets beat
    0 and begins ticking every ``60000 / bpm`` milliseconds; each tick
    advances the beat modulo the cycle length and the wrap from the last
    beat back to 0 notifies cycle listeners. ``stop`` cancels the timer
    and clears the beat.
    """

    def __init__(
        self,
        driver: TimerDriver,
        bpm: float = constants.DEFAULT_BPM,
        beats_per_cycle: int = constants.BEATS_PER_MEASURE,
        logger: Optional[Logger] = None,
    ) -> None:
        if beats_per_cycle < 1:
            raise ValueError(f"Invalid beats per cycle: {beats_per_cycle}")
        self._driver = driver
        self._beats_per_cycle = beats_per_cycle
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._lock = RLock()
        self._bpm = clamp_bpm(bpm)
        self._running = False
        self._current_beat: Optional[int] = None
        self._generation = 0
        self._epoch = 0
        self._beat_listeners: List[BeatListener] = []
        self._cycle_listeners: List[CycleListener] = []

    @property
    def bpm(self) -> float:
        return self._bpm

    @property
    def period_ms(self) -> float:
        return period_ms(self._bpm)

    @property
    def beats_per_cycle(self) -> int:
        return self._beats_per_cycle

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def current_beat(self) -> Optional[int]:
        """Index of the current beat, or None when stopped."""
        return self._current_beat

    def add_beat_listener(self, listener: BeatListener) -> None:
        with self._lock:
            self._beat_listeners.append(listener)

    def add_cycle_listener(self, listener: CycleListener) -> None:
        with self._lock:
            self._cycle_listeners.append(listener)

    def start(self) -> None:
        """Start ticking from beat 0, restarting if already running."""
        with self._lock:
            if self._running:
                self._logger.debug("Beat clock restarting")
            self._epoch += 1
            self._running = True
            self._current_beat = 0
            self._schedule()
            self._logger.info("Beat clock started at %s bpm", self._bpm)
            self._notify_beat(0)

    def stop(self) -> None:
        """Cancel the timer and clear the current beat. Always safe to call."""
        with self._lock:
            self._epoch += 1
            self._generation += 1
            self._driver.cancel()
            if self._running:
                self._logger.info("Beat clock stopped")
            self._running = False
            self._current_beat = None

    def reset(self) -> None:
        """Return to beat 0 without stopping."""
        with self._lock:
            if self._running:
                self._current_beat = 0

    def set_bpm(self, bpm: float) -> float:
        """Change the tempo, clamping it to the supported range.

        If running, the timer is cancelled and rescheduled so the next tick
        already uses the new period. The current beat is kept.

        Returns:
            The tempo actually applied.
        """
        clamped = clamp_bpm(bpm)
        if clamped != bpm:
            self._logger.warning("Clamped bpm %s to %s", bpm, clamped)
        with self._lock:
            if clamped == self._bpm:
                return clamped
            self._bpm = clamped
            if self._running:
                self._schedule()
            self._logger.debug("Set bpm to %s", clamped)
        return clamped

    def tick(self) -> Optional[int]:
        """Advance to the next beat.

        Invoked by the timer. Does nothing while stopped.

        Returns:
            The new beat index, or None if the clock is stopped.
        """
        with self._lock:
            if not self._running or self._current_beat is None:
                return None
            previous = self._current_beat
            beat = (previous + 1) % self._beats_per_cycle
            self._current_beat = beat
            self._logger.debug("Beat %d -> %d", previous, beat)
            epoch = self._epoch
            if beat == 0 and previous == self._beats_per_cycle - 1:
                for cycle_listener in list(self._cycle_listeners):
                    cycle_listener()
            # A cycle listener may have stopped or restarted the clock.
            if epoch == self._epoch:
                self._notify_beat(beat)
            return self._current_beat

    @override
    def close(self) -> None:
        self.stop()
        self._driver.close()

    def _schedule(self) -> None:
        self._generation += 1
        generation = self._generation
        self._driver.cancel()
        self._driver.start(self.period_ms, lambda: self._on_timer(generation))

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                self._logger.debug("Dropped tick from stale timer %d", generation)
                return
            self.tick()

    def _notify_beat(self, beat: int) -> None:
        for listener in list(self._beat_listeners):
            listener(beat)


class Metronome(Closeable):
    """A single-beat clock that clicks once per beat.

    The first click sounds immediately on start.
    """

    def __init__(
        self,
        driver: TimerDriver,
        on_click: Callable[[], None],
        bpm: float = constants.DEFAULT_BPM,
        logger: Optional[Logger] = None,
    ) -> None:
        self._clock = BeatClock(driver, bpm=bpm, beats_per_cycle=1, logger=logger)
        self._clock.add_beat_listener(lambda _: on_click())

    @property
    def bpm(self) -> float:
        return self._clock.bpm

    @property
    def is_playing(self) -> bool:
        return self._clock.is_running

    @property
    def is_valid(self) -> bool:
        return is_valid_bpm(self._clock.bpm)

    def start(self) -> None:
        self._clock.start()

    def stop(self) -> None:
        self._clock.stop()

    def toggle(self) -> None:
        if self._clock.is_running:
            self._clock.stop()
        else:
            self._clock.start()

    def set_bpm(self, bpm: float) -> float:
        return self._clock.set_bpm(bpm)

    @override
    def close(self) -> None:
        self._clock.close()

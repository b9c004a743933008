"""Command line for fretlab.

Subcommands draw CAGED shapes on a text fretboard, list the diatonic
triads of a scale, run the metronome or rhythm trainer against a MIDI
output port, and run the chord identification quiz in the terminal.
"""

import logging
from argparse import ArgumentParser, Namespace
from dataclasses import replace
from pathlib import Path
from random import Random
from threading import Event
from typing import List, Optional

from fretlab import constants
from fretlab.caged import CagedState, CagedView, render_fretboard
from fretlab.clicks import (
    METRONOME_CLICK,
    ClickSink,
    LogClickSink,
    MidiClickSink,
    render_measure,
)
from fretlab.config import Config, init_config, save_preferences
from fretlab.diatonic import ScaleKind, diatonic_triads
from fretlab.quiz import (
    QUIZ_PRESETS,
    QuizGenerator,
    QuizMode,
    QuizSession,
    clamp_question_count,
    describe,
)
from fretlab.rhythm import ALL_PATTERNS, PATTERN_LOOKUP, RhythmPattern, random_panels
from fretlab.rhythm_game import RhythmGame
from fretlab.scheduler import BeatClock, Metronome, ThreadTimer
from fretlab.shapes import ShapeLetter
from fretlab.theory import NOTE_NAMES, Quality


def parse_note_name(name: str) -> int:
    """Pitch class of a sharp-notation note name such as ``F#``.

    Raises:
        ValueError: If the name is not one of the twelve note names.
    """
    try:
        return NOTE_NAMES.index(name.upper())
    except ValueError:
        raise ValueError(f"Unknown note name: {name}") from None


def open_sink(config: Config) -> ClickSink:
    if config.midi_port is None:
        logging.info("no midi port given, logging clicks")
        return LogClickSink()
    logging.info("opening midi port %s", config.midi_port)
    return MidiClickSink.open(config.midi_port, channel=config.midi_channel)


def wait_until_done(seconds: Optional[float]) -> None:
    """Block for a number of seconds, or until interrupted if None."""
    try:
        Event().wait(timeout=seconds)
    except KeyboardInterrupt:
        pass


def run_shape(args: Namespace) -> None:
    state = CagedState.initial().set_chord(ShapeLetter.parse(args.chord))
    state = state.set_quality(Quality.parse(args.quality))
    state = state.set_position(args.position)
    if args.all_shapes:
        state = state.toggle_show_all_shapes()
    if args.pentatonic:
        state = state.toggle_show_pentatonic()
    if args.notes:
        state = state.toggle_show_all_notes()
    view = CagedView(state)
    print(f"{state.chord.name} {state.quality.value}: {view.current_shape.name} shape")
    for line in render_fretboard(view):
        print(line)


def run_scale(args: Namespace) -> None:
    key = parse_note_name(args.key)
    for triad in diatonic_triads(key, ScaleKind(args.kind)):
        notes = " ".join(NOTE_NAMES[n] for n in triad.notes)
        print(f"{triad.roman_numeral:<5} {triad.chord_name:<14} {triad.formula:<8} {notes}")


def run_metronome(config: Config, args: Namespace) -> None:
    sink = open_sink(config)
    metronome = Metronome(
        ThreadTimer(), lambda: sink.click(METRONOME_CLICK), bpm=config.bpm
    )
    try:
        metronome.start()
        logging.info("metronome running at %s bpm", metronome.bpm)
        wait_until_done(args.duration)
    finally:
        metronome.close()
        sink.close()


def select_panels(args: Namespace, rng: Random) -> List[RhythmPattern]:
    if args.random:
        return random_panels(rng)
    panels: List[RhythmPattern] = []
    for pattern_id in args.patterns:
        pattern = PATTERN_LOOKUP.get(pattern_id)
        if pattern is None:
            raise ValueError(f"Unknown rhythm pattern: {pattern_id}")
        panels.append(pattern)
    return panels


def run_rhythm(config: Config, args: Namespace, rng: Random) -> None:
    if args.list:
        for pattern in ALL_PATTERNS:
            print(f"{pattern.id:<28} {pattern.name:<32} {pattern.category.display_name}")
        return
    panels = select_panels(args, rng)
    if args.render is not None:
        render_measure(panels, config.bpm, args.render, channel=config.midi_channel)
        logging.info("rendered measure to %s", args.render)
        return
    clock = BeatClock(ThreadTimer(), bpm=config.bpm)
    game = RhythmGame(clock, open_sink(config), rng=rng)
    try:
        for index, pattern in enumerate(panels):
            game.set_pattern(index, pattern)
        game.set_random_change_mode(args.random_change)
        game.start()
        logging.info("rhythm trainer running: %s", [p.id for p in game.panels])
        wait_until_done(args.duration)
    finally:
        game.close()


def run_quiz(config: Config, args: Namespace, rng: Random) -> None:
    prefs = config.quiz
    if args.preset is not None:
        prefs = QUIZ_PRESETS[args.preset]
    if args.mode is not None:
        prefs = replace(prefs, mode=QuizMode(args.mode))
    if args.count is not None:
        prefs = replace(prefs, question_count=clamp_question_count(args.count))
    if args.save:
        save_preferences(config.preferences_path, prefs)

    session = QuizSession()
    session.start(QuizGenerator(prefs, rng).generate())
    try:
        while session.state.is_active:
            question = session.current_question
            assert question is not None
            print(f"Question {question.id}/{session.state.total}: {describe(question)}")
            print("Choices: " + " ".join(c.name for c in question.choices))
            choice = input("> ").strip()
            try:
                answer = session.answer(ShapeLetter.parse(choice))
            except ValueError:
                print(f"Not a choice: {choice}")
                continue
            if answer.is_correct:
                print("Correct!")
            else:
                print(f"Wrong, it was {answer.correct.name}")
            session.next_question()
    except (KeyboardInterrupt, EOFError):
        session.finish()
    print(
        f"Score: {session.state.score}/{session.state.total} "
        f"({session.score_percentage:.0f}%)"
    )


def make_parser() -> ArgumentParser:
    """Create the command-line argument parser."""
    parser = ArgumentParser(prog="fretlab")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--midi-port", help="MIDI output port for clicks")
    parser.add_argument(
        "--midi-channel", type=int, default=constants.DEFAULT_MIDI_CHANNEL
    )
    parser.add_argument("--preferences", type=Path, help="Quiz preferences file")
    parser.add_argument("--seed", type=int, help="Seed for random choices")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    shape_parser = subparsers.add_parser("shape", help="Draw a CAGED shape")
    shape_parser.add_argument("chord", choices=[s.name for s in ShapeLetter])
    shape_parser.add_argument(
        "--quality", default="major", choices=[q.value for q in Quality]
    )
    shape_parser.add_argument(
        "--position", type=int, default=0, help="Index into the CAGED sequence (0-4)"
    )
    shape_parser.add_argument("--all-shapes", action="store_true")
    shape_parser.add_argument("--pentatonic", action="store_true")
    shape_parser.add_argument("--notes", action="store_true")

    scale_parser = subparsers.add_parser("scale", help="List diatonic triads")
    scale_parser.add_argument("key", help="Scale root, e.g. C or F#")
    scale_parser.add_argument(
        "--kind", default="major", choices=[k.value for k in ScaleKind]
    )

    metronome_parser = subparsers.add_parser("metronome", help="Run the metronome")
    metronome_parser.add_argument("--bpm", type=float, default=constants.DEFAULT_BPM)
    metronome_parser.add_argument(
        "--duration", type=float, help="Seconds to run (default: until interrupted)"
    )

    rhythm_parser = subparsers.add_parser("rhythm", help="Run the rhythm trainer")
    rhythm_parser.add_argument("--bpm", type=float, default=constants.DEFAULT_BPM)
    rhythm_parser.add_argument(
        "--duration", type=float, help="Seconds to run (default: until interrupted)"
    )
    rhythm_parser.add_argument(
        "patterns",
        nargs="*",
        default=[],
        help="Pattern id for each beat (see --list)",
    )
    rhythm_parser.add_argument("--random", action="store_true")
    rhythm_parser.add_argument("--random-change", action="store_true")
    rhythm_parser.add_argument("--list", action="store_true")
    rhythm_parser.add_argument("--render", help="Write the measure to a MIDI file")

    quiz_parser = subparsers.add_parser("quiz", help="Run the chord quiz")
    quiz_parser.add_argument("--preset", choices=sorted(QUIZ_PRESETS))
    quiz_parser.add_argument("--mode", choices=[m.value for m in QuizMode])
    quiz_parser.add_argument("--count", type=int)
    quiz_parser.add_argument(
        "--save", action="store_true", help="Save these settings as preferences"
    )
    return parser


def configure_logging(log_level: str) -> None:
    """Configure the logging system with the specified log level.

    Args:
        log_level: The logging level (e.g., 'DEBUG', 'INFO', 'WARNING').
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(filename)s:%(lineno)d -- %(message)s",
        level=log_level,
    )


def main() -> None:
    parser = make_parser()
    args = parser.parse_args()
    configure_logging(args.log_level)
    if not args.command:
        parser.print_help()
        return
    if args.command == "rhythm" and not (args.list or args.random):
        if len(args.patterns) != constants.BEATS_PER_MEASURE:
            parser.error(
                f"rhythm needs {constants.BEATS_PER_MEASURE} pattern ids, --random or --list"
            )
    rng = Random(args.seed)
    config = init_config(
        bpm=getattr(args, "bpm", constants.DEFAULT_BPM),
        midi_port=args.midi_port,
        midi_channel=args.midi_channel,
        preferences_path=args.preferences,
    )

    if args.command == "shape":
        run_shape(args)
    elif args.command == "scale":
        run_scale(args)
    elif args.command == "metronome":
        run_metronome(config, args)
    elif args.command == "rhythm":
        run_rhythm(config, args, rng)
    elif args.command == "quiz":
        run_quiz(config, args, rng)
    logging.info("done")


if __name__ == "__main__":
    main()

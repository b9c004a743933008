"""CAGED visualizer state and per-cell fretboard queries.

``CagedState`` is the visualizer's state machine (selected chord, quality,
position in the CAGED sequence and the view toggles). ``CagedView`` answers
every question the renderer asks once per fretboard cell for a given
state: whether a dot is drawn, how it is colored, whether it is a root,
and whether chord-tone, pentatonic or note-name overlays apply.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List

from fretlab import constants
from fretlab.shapes import (
    ColorBand,
    ShapeLetter,
    blend_style,
    caged_sequence,
    fret_for_shape_at_string,
    get_shape,
    is_in_pentatonic_box,
    shape_positions,
    shapes_overlapping_position,
    should_show_chord_dot,
)
from fretlab.theory import (
    Quality,
    is_chord_note,
    is_natural_note,
    is_pentatonic_note,
    note_name_at_position,
)


@dataclass(frozen=True)
class CagedState:
    """Immutable visualizer state; transitions return a new state."""

    chord: ShapeLetter
    """The selected root chord."""
    quality: Quality
    """Major or minor variant of every shape."""
    position: int
    """Index into the chord's CAGED sequence."""
    show_all_shapes: bool
    show_pentatonic: bool
    show_all_notes: bool

    @staticmethod
    def initial() -> CagedState:
        return CagedState(
            chord=ShapeLetter.C,
            quality=Quality.Major,
            position=0,
            show_all_shapes=False,
            show_pentatonic=False,
            show_all_notes=False,
        )

    def set_chord(self, chord: ShapeLetter) -> CagedState:
        """Select a new chord, returning to the first position of its sequence."""
        return replace(self, chord=chord, position=0)

    def set_quality(self, quality: Quality) -> CagedState:
        """Switch quality, keeping the current position."""
        return replace(self, quality=quality)

    def next_position(self) -> CagedState:
        return replace(self, position=(self.position + 1) % len(ShapeLetter))

    def previous_position(self) -> CagedState:
        return replace(self, position=(self.position - 1) % len(ShapeLetter))

    def set_position(self, position: int) -> CagedState:
        if position < 0 or position >= len(ShapeLetter):
            raise ValueError(f"Invalid sequence position: {position}")
        return replace(self, position=position)

    def toggle_show_all_shapes(self) -> CagedState:
        return replace(self, show_all_shapes=not self.show_all_shapes)

    def toggle_show_pentatonic(self) -> CagedState:
        return replace(self, show_pentatonic=not self.show_pentatonic)

    def toggle_show_all_notes(self) -> CagedState:
        return replace(self, show_all_notes=not self.show_all_notes)


class CagedView:
    """Fretboard queries for one visualizer state.

    Derived tables (sequence and base positions) are computed once on
    construction; the per-cell queries are then cheap pure lookups.
    """

    def __init__(self, state: CagedState) -> None:
        self._state = state
        self._sequence = caged_sequence(state.chord)
        self._positions = shape_positions(state.chord.natural_root)

    @property
    def state(self) -> CagedState:
        return self._state

    @property
    def sequence(self) -> List[ShapeLetter]:
        """The CAGED sequence starting at the chord's own shape."""
        return list(self._sequence)

    @property
    def positions(self) -> Dict[ShapeLetter, int]:
        """Base fret offset of every shape for the selected chord."""
        return dict(self._positions)

    @property
    def current_shape(self) -> ShapeLetter:
        return self._sequence[self._state.position]

    def shape_fret(self, letter: ShapeLetter, str_index: int) -> int:
        """Absolute fret the given shape frets on a string, or -1."""
        shape = get_shape(letter, self._state.quality)
        return fret_for_shape_at_string(
            shape.pattern, str_index, self._positions[letter]
        )

    def shapes_at(self, str_index: int, fret: int) -> List[ShapeLetter]:
        """Shapes of the sequence fretting a position, in sequence order."""
        return shapes_overlapping_position(
            self._sequence, self._positions, str_index, fret, self._state.quality
        )

    def should_show_dot(self, str_index: int, fret: int) -> bool:
        if self._state.show_all_shapes:
            return len(self.shapes_at(str_index, fret)) > 0
        letter = self.current_shape
        shape = get_shape(letter, self._state.quality)
        return should_show_chord_dot(
            shape.pattern, str_index, fret, self._positions[letter]
        )

    def dot_style(self, str_index: int, fret: int) -> List[ColorBand]:
        """Color bands for the dot at a position.

        In single-shape mode this is always the current shape's solid color.
        """
        if self._state.show_all_shapes:
            return blend_style(self.shapes_at(str_index, fret), self._state.quality)
        return blend_style([self.current_shape], self._state.quality)

    def is_key_note(self, str_index: int, fret: int) -> bool:
        """Check whether a drawn dot is a root of a shape it belongs to."""
        if self._state.show_all_shapes:
            return any(
                str_index in get_shape(letter, self._state.quality).key_notes
                for letter in self.shapes_at(str_index, fret)
            )
        shape = get_shape(self.current_shape, self._state.quality)
        return str_index in shape.key_notes and self.should_show_dot(str_index, fret)

    def is_chord_tone(self, str_index: int, fret: int) -> bool:
        return is_chord_note(
            str_index, fret, self._state.chord.natural_root, self._state.quality
        )

    def should_show_pentatonic_dot(self, str_index: int, fret: int) -> bool:
        """Check the pentatonic overlay at a position.

        With all shapes shown, every pentatonic note is drawn; otherwise
        only notes inside the current shape's box.
        """
        if not is_pentatonic_note(
            str_index, fret, self._state.chord.natural_root, self._state.quality
        ):
            return False
        if self._state.show_all_shapes:
            return True
        letter = self.current_shape
        return is_in_pentatonic_box(
            letter, self._state.quality, self._positions[letter], fret
        )

    def should_show_note_name(self, str_index: int, fret: int) -> bool:
        return self._state.show_all_notes and is_natural_note(str_index, fret)

    def note_name(self, str_index: int, fret: int) -> str:
        return note_name_at_position(str_index, fret)


def render_fretboard(view: CagedView) -> List[str]:
    """Draw the fretboard as text, one line per string.

    Fretted shape dots show the letter of the first shape there (upper
    case for roots), pentatonic overlay notes show ``o`` and natural note
    names are drawn where enabled. Open strings are marked in the nut
    column when the current shape plays them open.
    """
    lines: List[str] = []
    for str_index in range(constants.STRING_COUNT):
        cells: List[str] = []
        for fret in range(constants.MAX_FRET + 1):
            cell = "-"
            if view.should_show_dot(str_index, fret):
                if view.state.show_all_shapes:
                    letter = view.shapes_at(str_index, fret)[0]
                else:
                    letter = view.current_shape
                root = view.is_key_note(str_index, fret)
                cell = letter.name if root else letter.name.lower()
            elif fret == 0 and view.shape_fret(view.current_shape, str_index) == 0:
                cell = "0"
            elif view.state.show_pentatonic and view.should_show_pentatonic_dot(
                str_index, fret
            ):
                cell = "o"
            elif view.should_show_note_name(str_index, fret):
                cell = view.note_name(str_index, fret)
            cells.append(cell.ljust(2, "-"))
        name = constants.STRING_NAMES[str_index]
        lines.append(f"{name} |" + "|".join(cells) + "|")
    return lines

import pytest

from fretlab.caged import CagedState, CagedView, render_fretboard
from fretlab.shapes import SHAPE_LIBRARY, ShapeLetter, get_shape
from fretlab.theory import Quality

C, A, G, E, D = ShapeLetter.C, ShapeLetter.A, ShapeLetter.G, ShapeLetter.E, ShapeLetter.D


def test_initial_state() -> None:
    state = CagedState.initial()
    assert state.chord == C
    assert state.quality == Quality.Major
    assert state.position == 0
    assert not state.show_all_shapes
    assert not state.show_pentatonic
    assert not state.show_all_notes


def test_position_wraps() -> None:
    state = CagedState.initial()
    for _ in range(5):
        state = state.next_position()
    assert state.position == 0
    assert state.previous_position().position == 4
    assert state.next_position().next_position().position == 2


def test_set_chord_resets_position() -> None:
    state = CagedState.initial().set_position(3).set_chord(G)
    assert state.chord == G
    assert state.position == 0


def test_set_quality_keeps_position() -> None:
    state = CagedState.initial().set_position(2).set_quality(Quality.Minor)
    assert state.quality == Quality.Minor
    assert state.position == 2


def test_set_position_range() -> None:
    with pytest.raises(ValueError):
        CagedState.initial().set_position(5)
    with pytest.raises(ValueError):
        CagedState.initial().set_position(-1)


def test_toggles() -> None:
    state = CagedState.initial().toggle_show_all_shapes().toggle_show_pentatonic()
    assert state.show_all_shapes
    assert state.show_pentatonic
    assert not state.toggle_show_pentatonic().show_pentatonic
    assert state.toggle_show_all_notes().show_all_notes


def test_view_sequence_and_positions() -> None:
    view = CagedView(CagedState.initial().set_chord(G).next_position())
    assert view.sequence == [G, E, D, C, A]
    assert view.positions == {C: 7, A: 10, G: 0, E: 3, D: 5}
    assert view.current_shape == E
    assert view.shape_fret(E, 0) == 3
    assert view.shape_fret(D, 5) == -1


def test_single_shape_dots() -> None:
    view = CagedView(CagedState.initial().set_chord(G).next_position())
    # E shape barred at the third fret
    assert view.should_show_dot(0, 3)
    assert view.should_show_dot(3, 5)
    assert not view.should_show_dot(0, 5)
    assert view.is_key_note(0, 3)
    assert view.is_key_note(5, 3)
    assert not view.is_key_note(1, 3)
    assert not view.is_key_note(0, 4)
    color = get_shape(E).color
    assert [band.color for band in view.dot_style(0, 3)] == [color]


def test_show_all_shapes() -> None:
    view = CagedView(CagedState.initial().toggle_show_all_shapes())
    assert view.shapes_at(4, 3) == [C, A]
    assert view.should_show_dot(4, 3)
    assert view.should_show_dot(0, 8)
    assert not view.should_show_dot(0, 0)
    major = SHAPE_LIBRARY[Quality.Major]
    assert [band.color for band in view.dot_style(4, 3)] == [
        major[C].color,
        major[A].color,
    ]
    # Root of the C shape and of the A shape
    assert view.is_key_note(4, 3)
    assert not view.is_key_note(1, 1)


def test_chord_tones() -> None:
    view = CagedView(CagedState.initial())
    assert view.is_chord_tone(1, 1)  # C
    assert view.is_chord_tone(0, 0)  # E
    assert not view.is_chord_tone(0, 1)  # F
    minor = CagedView(CagedState.initial().set_quality(Quality.Minor))
    assert minor.is_chord_tone(3, 1)  # D#
    assert not minor.is_chord_tone(0, 0)  # E is not in C minor


def test_pentatonic_overlay() -> None:
    state = CagedState.initial().toggle_show_pentatonic()
    view = CagedView(state)
    # C shape box spans frets 0-3
    assert view.should_show_pentatonic_dot(0, 0)  # E
    assert not view.should_show_pentatonic_dot(0, 1)  # F
    assert not view.should_show_pentatonic_dot(0, 5)  # A, outside the box
    all_view = CagedView(state.toggle_show_all_shapes())
    assert all_view.should_show_pentatonic_dot(0, 5)


def test_note_names() -> None:
    view = CagedView(CagedState.initial())
    assert not view.should_show_note_name(0, 1)
    names = CagedView(CagedState.initial().toggle_show_all_notes())
    assert names.should_show_note_name(0, 1)
    assert not names.should_show_note_name(0, 2)
    assert names.note_name(0, 1) == "F"


def test_render_fretboard() -> None:
    lines = render_fretboard(CagedView(CagedState.initial()))
    assert len(lines) == 6
    assert lines[0].startswith("E |0-|--|")
    assert lines[1].startswith("B |--|c-|")
    assert lines[4].startswith("A |--|--|--|C-|")
    assert lines[5].startswith("E |--|--|")

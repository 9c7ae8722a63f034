import math

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth

from app.core.exceptions import ConfigurationError
from app.services.layout import BOLD_FONT
from app.services.layout import REGULAR_FONT
from app.services.layout import PageLayoutState
from app.services.layout import TextFlowCursor
from app.services.layout import wrap_text


def _small_state(**overrides) -> PageLayoutState:
    params = dict(
        page_width=200.0,
        page_height=200.0,
        margin_x=20.0,
        margin_y=20.0,
        line_height=10.0,
        font_name=REGULAR_FONT,
        font_size=8.0,
    )
    params.update(overrides)
    return PageLayoutState(**params)


# ---------------------------------------------------------------------------
# wrap_text
# ---------------------------------------------------------------------------


def test_wrap_text_never_splits_words():
    text = "a supercalifragilisticoespialidoso b"
    lines = wrap_text(text, 20.0, REGULAR_FONT, 10.0)
    assert lines == ["a", "supercalifragilisticoespialidoso", "b"]


def test_wrap_text_respects_width_for_multi_word_lines():
    text = " ".join(["palabra"] * 60)
    lines = wrap_text(text, 120.0, REGULAR_FONT, 10.0)
    assert len(lines) > 1
    for line in lines:
        if " " in line:
            assert stringWidth(line, REGULAR_FONT, 10.0) <= 120.0
    assert " ".join(lines).split() == text.split()


def test_wrap_text_keeps_explicit_newlines_and_blank_paragraphs():
    lines = wrap_text("uno\n\ndos", 500.0, REGULAR_FONT, 10.0)
    assert lines == ["uno", "", "dos"]


def test_wrap_text_empty_text_gives_one_empty_line():
    assert wrap_text("", 100.0, REGULAR_FONT, 10.0) == [""]


# ---------------------------------------------------------------------------
# PageLayoutState
# ---------------------------------------------------------------------------


def test_layout_state_starts_at_top_margin():
    state = _small_state()
    assert state.cursor_y == 20.0
    assert state.bottom_limit == 180.0
    assert state.content_width == 160.0


def test_layout_state_rejects_page_without_room():
    with pytest.raises(ConfigurationError):
        _small_state(page_height=40.0, margin_y=20.0)
    with pytest.raises(ConfigurationError):
        _small_state(page_width=40.0, margin_x=20.0)


# ---------------------------------------------------------------------------
# TextFlowCursor
# ---------------------------------------------------------------------------


def test_no_line_is_drawn_outside_margins(recording_canvas):
    state = _small_state()
    cursor = TextFlowCursor(recording_canvas, state)
    for i in range(5):
        cursor.draw_block(f"Estudiante {i} " + "texto largo " * 40)

    assert recording_canvas.drawn
    for _x, y, _text in recording_canvas.drawn:
        assert state.margin_y <= y <= state.page_height - state.margin_y - state.line_height


def test_long_summary_breaks_pages_exactly_as_needed(recording_canvas):
    state = _small_state(margin_x=60.0)  # content width of 80pt
    summary = ("evaluación " * 200)[:2000]
    assert len(summary) == 2000

    cursor = TextFlowCursor(recording_canvas, state)
    line_count = cursor.draw_block(summary)

    lines_per_page = int((state.bottom_limit - state.margin_y) // state.line_height)
    expected_pages = math.ceil(line_count / lines_per_page)
    assert line_count > lines_per_page
    assert cursor.page_count == expected_pages
    assert len(recording_canvas.pages) == expected_pages
    assert sum(1 for call in recording_canvas.calls if call[0] == "showPage") == expected_pages - 1
    assert all(len(page) == lines_per_page for page in recording_canvas.pages[:-1])


def test_lines_on_a_page_never_overlap(recording_canvas):
    state = _small_state()
    cursor = TextFlowCursor(recording_canvas, state)
    cursor.draw_block("palabra " * 300)
    for page in recording_canvas.pages:
        ys = [y for _x, y, _t in page]
        assert all(a - b >= state.line_height for a, b in zip(ys, ys[1:]))


def test_ensure_space_at_top_of_page_does_not_add_blank_page(recording_canvas):
    cursor = TextFlowCursor(recording_canvas, _small_state())
    cursor.ensure_space(1000)
    assert cursor.page_count == 1
    assert ("showPage",) not in recording_canvas.calls


def test_ensure_space_moves_block_to_next_page(recording_canvas):
    state = _small_state()
    cursor = TextFlowCursor(recording_canvas, state)
    cursor.advance(14)  # two free lines left
    cursor.ensure_space(3)
    assert cursor.page_count == 2
    assert state.cursor_y == state.margin_y


def test_style_context_restores_previous_style(recording_canvas):
    state = _small_state()
    cursor = TextFlowCursor(recording_canvas, state)
    with cursor.style(font_name=BOLD_FONT, font_size=14.0):
        assert state.font_name == BOLD_FONT
        assert recording_canvas.fonts[-1] == (BOLD_FONT, 14.0)
    assert state.font_name == REGULAR_FONT
    assert state.font_size == 8.0
    assert recording_canvas.fonts[-1] == (REGULAR_FONT, 8.0)


def test_new_page_reapplies_current_style(recording_canvas):
    cursor = TextFlowCursor(recording_canvas, _small_state())
    cursor.set_style(font_name=BOLD_FONT)
    cursor.new_page()
    show_index = recording_canvas.calls.index(("showPage",))
    assert ("setFont", BOLD_FONT, 8.0) in recording_canvas.calls[show_index:]

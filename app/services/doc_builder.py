import io
import logging
from collections.abc import Callable
from uuid import uuid4

from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from app.core.config import settings
from app.generation_logic.static_content import AGGREGATE_DOCUMENT_TITLE
from app.generation_logic.static_content import APPENDIX_PARAGRAPHS
from app.generation_logic.static_content import APPENDIX_TITLE
from app.generation_logic.static_content import DATA_SOURCES_LABEL
from app.generation_logic.static_content import GENERAL_NOTES_TITLE
from app.generation_logic.static_content import STUDENT_DOCUMENT_TITLE
from app.generation_logic.static_content import STUDENT_NOTE_LABEL
from app.generation_logic.static_content import TEAMWORK_LABEL
from app.models.report_models import EvaluationResult
from app.models.report_models import RenderedDocument
from app.models.report_models import StudentRecord
from app.services.archive import student_entry_name
from app.services.filenames import aggregate_filename
from app.services.layout import BOLD_FONT
from app.services.layout import REGULAR_FONT
from app.services.layout import PageLayoutState
from app.services.layout import TextFlowCursor

# Configure module logger
logger = logging.getLogger(__name__)

PAGE_SIZES: dict[str, tuple[float, float]] = {"A4": A4, "LETTER": LETTER}

TEXT_COLOR = colors.black
NOTE_COLOR = HexColor("#B45309")  # amber
SECTION_GAP = 4.0
PDF_AUTHOR = "FeedbackAI"


class DocBuilderError(Exception):
    """Raised when PDF generation fails"""


def _new_layout_state() -> PageLayoutState:
    page_width, page_height = PAGE_SIZES[settings.page_size]
    return PageLayoutState(
        page_width=page_width,
        page_height=page_height,
        margin_x=settings.page_margin_x,
        margin_y=settings.page_margin_y,
        line_height=settings.line_height,
        font_name=REGULAR_FONT,
        font_size=settings.body_font_size,
        color=TEXT_COLOR,
    )


def _render_pdf(title: str, draw: Callable[[TextFlowCursor], None], rid: str) -> bytes:
    """Build one PDF in memory; every call owns a fresh canvas and layout state."""
    buffer = io.BytesIO()
    try:
        state = _new_layout_state()
        pdf = canvas.Canvas(buffer, pagesize=(state.page_width, state.page_height))
        pdf.setTitle(title)
        pdf.setAuthor(PDF_AUTHOR)
        cursor = TextFlowCursor(pdf, state)
        draw(cursor)
        pdf.save()
        content = buffer.getvalue()
        logger.debug("[%s] PDF '%s' ready: %d page(s), %d bytes", rid, title, cursor.page_count, len(content))
        return content
    finally:
        buffer.close()


def _draw_heading(cursor: TextFlowCursor, text: str) -> None:
    with cursor.style(font_name=BOLD_FONT, font_size=settings.heading_font_size):
        lines = cursor.wrap(text)
        cursor.ensure_space(len(lines))
        cursor.draw_lines(lines)


def _draw_student_sections(cursor: TextFlowCursor, student: StudentRecord) -> None:
    """Header, both competency blocks and the optional note of one student."""
    _draw_heading(cursor, f"{student.name} ({student.id})")
    cursor.advance(0, SECTION_GAP)

    # The label is kept even when the summary is empty
    cursor.draw_block(f"{DATA_SOURCES_LABEL}: {student.summary_a}", extra_after=SECTION_GAP)
    cursor.draw_block(f"{TEAMWORK_LABEL}: {student.summary_b}", extra_after=SECTION_GAP)

    notes = student.display_notes
    if notes:
        with cursor.style(font_size=settings.note_font_size, color=NOTE_COLOR):
            cursor.draw_block(f"{STUDENT_NOTE_LABEL}: {notes}")


def _draw_general_notes(cursor: TextFlowCursor, notes: str) -> None:
    cursor.blank_line()
    _draw_heading(cursor, GENERAL_NOTES_TITLE)
    cursor.draw_block(notes)


def _draw_appendix(cursor: TextFlowCursor) -> None:
    cursor.blank_line()
    _draw_heading(cursor, APPENDIX_TITLE)
    cursor.advance(0, SECTION_GAP)
    for paragraph in APPENDIX_PARAGRAPHS:
        cursor.draw_block(paragraph, extra_after=SECTION_GAP)


def render_aggregate(result: EvaluationResult, base_name: str, request_id: str | None = None) -> RenderedDocument | None:
    """Render every student of *result* into one PDF.

    Returns ``None`` when there are no students; nothing is rendered then.
    """
    rid = request_id or str(uuid4())
    if result.is_empty:
        logger.info("[%s] No students in result, skipping aggregate report", rid)
        return None

    logger.info("[%s] Rendering aggregate report for %d students", rid, len(result.students))

    def _draw(cursor: TextFlowCursor) -> None:
        for index, student in enumerate(result.students):
            if index > 0:
                cursor.blank_line()
            _draw_student_sections(cursor, student)
        general_notes = result.display_notes
        if general_notes:
            _draw_general_notes(cursor, general_notes)

    try:
        content = _render_pdf(AGGREGATE_DOCUMENT_TITLE, _draw, rid)
    except Exception as err:
        logger.exception("[%s] Aggregate report generation failed", rid)
        raise DocBuilderError("unexpected rendering error") from err

    filename = aggregate_filename(base_name)
    logger.info("[%s] Aggregate report ready: %s (%d bytes)", rid, filename, len(content))
    return RenderedDocument(content=content, filename=filename)


def render_student_document(student: StudentRecord, base_name: str, request_id: str | None = None) -> RenderedDocument:
    """Render one student's PDF followed by the fixed appendix."""
    rid = request_id or str(uuid4())

    def _draw(cursor: TextFlowCursor) -> None:
        _draw_student_sections(cursor, student)
        _draw_appendix(cursor)

    try:
        content = _render_pdf(f"{STUDENT_DOCUMENT_TITLE}: {student.name}", _draw, rid)
    except Exception as err:
        logger.exception("[%s] Report generation failed for student '%s'", rid, student.name)
        raise DocBuilderError(f"unexpected rendering error for student '{student.name}'") from err

    return RenderedDocument(content=content, filename=student_entry_name(base_name, student))


def render_per_student(result: EvaluationResult, base_name: str, request_id: str | None = None) -> list[tuple[StudentRecord, RenderedDocument]]:
    """Render one independent PDF per student, in input order."""
    rid = request_id or str(uuid4())
    logger.info("[%s] Rendering %d per-student reports", rid, len(result.students))
    return [(student, render_student_document(student, base_name, rid)) for student in result.students]

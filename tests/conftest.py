import io

import pytest
from fastapi import UploadFile

from app.core.config import settings
from app.models.report_models import EvaluationResult
from app.models.report_models import StudentRecord


# Fixture factory to create upload files with filename and content
@pytest.fixture
def make_dummy_upload():
    def _make_dummy_upload(filename: str, content: bytes):
        return UploadFile(file=io.BytesIO(content), filename=filename)

    return _make_dummy_upload


@pytest.fixture
def ana() -> StudentRecord:
    return StudentRecord(
        name="Ana Ruiz",
        matricula="A001",
        summary_fuentes_datos_segura="Documenta sus fuentes con rigor.",
        summary_trabajo_en_equipo="Coordina bien las tareas del grupo.",
    )


@pytest.fixture
def sample_result(ana) -> EvaluationResult:
    return EvaluationResult(students=[ana])


@pytest.fixture
def two_student_result(ana) -> EvaluationResult:
    luis = StudentRecord(
        name="Luis Peña",
        matricula="B002",
        summary_fuentes_datos_segura="Falta trazabilidad en el ETL.",
        summary_trabajo_en_equipo="Participa de forma irregular.",
        notes="Entregó el informe final con atraso.",
    )
    return EvaluationResult(students=[ana, luis], notes="Curso evaluado en la semana 12.")


@pytest.fixture
def with_password(monkeypatch):
    """Configure the dashboard credentials admin / dci.2026."""
    monkeypatch.setattr(settings, "dashboard_username", "admin")
    monkeypatch.setattr(settings, "dashboard_password", "dci.2026")
    return ("admin", "dci.2026")


class RecordingCanvas:
    """Stands in for a reportlab canvas and records every call that matters for layout."""

    def __init__(self, page_height: float = 842.0):
        self.page_height = page_height
        self.calls: list[tuple] = []
        self.pages: list[list[tuple[float, float, str]]] = [[]]
        self.fonts: list[tuple[str, float]] = []

    def setFont(self, name, size):
        self.fonts.append((name, size))
        self.calls.append(("setFont", name, size))

    def setFillColor(self, color):
        self.calls.append(("setFillColor", color))

    def drawString(self, x, y, text):
        self.pages[-1].append((x, y, text))
        self.calls.append(("drawString", x, y, text))

    def showPage(self):
        self.pages.append([])
        self.calls.append(("showPage",))

    def setTitle(self, title):
        self.calls.append(("setTitle", title))

    def setAuthor(self, author):
        self.calls.append(("setAuthor", author))

    def save(self):
        self.calls.append(("save",))

    @property
    def drawn(self) -> list[tuple[float, float, str]]:
        return [item for page in self.pages for item in page]


@pytest.fixture
def recording_canvas():
    return RecordingCanvas()

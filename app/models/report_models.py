from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class StudentRecord(BaseModel):
    """One student's evaluation as returned by the processing service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = ""
    id: str = Field(default="", alias="matricula")
    summary_a: str = Field(default="", alias="summary_fuentes_datos_segura")  # data-source competency
    summary_b: str = Field(default="", alias="summary_trabajo_en_equipo")  # teamwork competency
    notes: str | None = None

    @field_validator("name", "id", "summary_a", "summary_b", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, int | float) and not isinstance(v, bool):
            # Matriculas read from spreadsheets sometimes arrive as numbers
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    @property
    def display_notes(self) -> str | None:
        """Trimmed notes, or None when there is nothing to show."""
        if self.notes and self.notes.strip():
            return self.notes.strip()
        return None


class EvaluationResult(BaseModel):
    """Structured evaluation result for one uploaded spreadsheet."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    students: list[StudentRecord] = Field(default_factory=list)
    notes: str | None = None

    @field_validator("students", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def is_empty(self) -> bool:
        return not self.students

    @property
    def display_notes(self) -> str | None:
        if self.notes and self.notes.strip():
            return self.notes.strip()
        return None


class RenderedDocument(BaseModel):
    """A finished binary document and the filename suggested for saving it."""

    model_config = ConfigDict(frozen=True)

    content: bytes
    filename: str


class ReportRequest(BaseModel):
    """Body of the report download endpoints."""

    result: EvaluationResult
    source_filename: str | None = None

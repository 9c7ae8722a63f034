import pytest
from pydantic import ValidationError

from app.models.report_models import EvaluationResult
from app.models.report_models import ReportRequest
from app.models.report_models import StudentRecord


def test_student_record_reads_wire_keys():
    student = StudentRecord.model_validate(
        {
            "name": "Ana Ruiz",
            "matricula": "A001",
            "summary_fuentes_datos_segura": "uno",
            "summary_trabajo_en_equipo": "dos",
            "notes": "tres",
        }
    )
    assert (student.id, student.summary_a, student.summary_b, student.notes) == ("A001", "uno", "dos", "tres")
    dumped = student.model_dump(by_alias=True)
    assert dumped["matricula"] == "A001"
    assert dumped["summary_trabajo_en_equipo"] == "dos"


def test_student_record_coerces_missing_and_numeric_values():
    student = StudentRecord.model_validate({"name": None, "matricula": 20231234.0, "summary_fuentes_datos_segura": None})
    assert student.name == ""
    assert student.id == "20231234"
    assert student.summary_a == ""
    assert student.summary_b == ""


@pytest.mark.parametrize("notes, expected", [(None, None), ("", None), ("   ", None), ("  Ojo  ", "Ojo")])
def test_display_notes(notes, expected):
    assert StudentRecord(name="Ana", notes=notes).display_notes == expected
    assert EvaluationResult(notes=notes).display_notes == expected


def test_evaluation_result_empty_states():
    assert EvaluationResult().is_empty
    assert EvaluationResult(students=None).is_empty
    assert not EvaluationResult(students=[{"name": "Ana"}]).is_empty


def test_student_record_is_immutable():
    student = StudentRecord(name="Ana")
    with pytest.raises(ValidationError):
        student.name = "Otra"


def test_report_request_source_filename_optional(sample_result):
    request = ReportRequest.model_validate({"result": sample_result.model_dump(by_alias=True)})
    assert request.source_filename is None
    assert request.result.students[0].name == "Ana Ruiz"

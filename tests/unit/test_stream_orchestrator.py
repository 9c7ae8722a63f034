import asyncio
import json

import pytest

from app.core.config import settings
from app.generation_logic import stream_orchestrator
from app.generation_logic.progress import ProgressState
from app.generation_logic.progress import ProgressTracker
from app.generation_logic.stream_orchestrator import _create_stream_event
from app.generation_logic.stream_orchestrator import _stream_processing_logic
from app.services.processing_client import JSONParsingError
from app.services.processing_client import ProcessingServiceError


@pytest.fixture(autouse=True)
def fast_progress(monkeypatch):
    monkeypatch.setattr(settings, "progress_tick_seconds", 0.001)
    monkeypatch.setattr(settings, "progress_step", 45)
    monkeypatch.setattr(settings, "progress_cap", 90)
    monkeypatch.setattr(settings, "progress_clear_delay", 0.0)
    monkeypatch.setattr(stream_orchestrator, "POLL_INTERVAL_SECONDS", 0.01)


@pytest.fixture
def trackers(monkeypatch):
    created = []

    class RecordingTracker(ProgressTracker):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            created.append(self)

    monkeypatch.setattr(stream_orchestrator, "ProgressTracker", RecordingTracker)
    return created


async def _collect(agen) -> list[dict]:
    return [json.loads(line) async for line in agen]


def test_create_stream_event_omits_empty_fields():
    assert json.loads(_create_stream_event("finished")) == {"type": "finished"}
    line = _create_stream_event("progress", progress=45)
    assert line.endswith("\n")
    assert json.loads(line) == {"type": "progress", "progress": 45}


def test_create_stream_event_keeps_accents():
    assert "vacío" in _create_stream_event("error", message="vacío")


@pytest.mark.asyncio
async def test_stream_success_emits_progress_data_finished(monkeypatch, sample_result, trackers):
    async def fake_process(filename, contents, content_type, request_id):
        assert filename == "curso1.xlsx"
        assert content_type.endswith("spreadsheetml.sheet")
        await asyncio.sleep(0.05)
        return sample_result

    monkeypatch.setattr(stream_orchestrator, "process_spreadsheet", fake_process)
    events = await _collect(_stream_processing_logic("curso1.xlsx", b"data", "req-1"))

    types = [e["type"] for e in events]
    assert types[0] == "status"
    assert types[-2:] == ["data", "finished"]
    progress = [e["progress"] for e in events if e["type"] == "progress"]
    assert progress[0] == 0
    assert progress[-1] == 100
    assert progress == sorted(progress)
    assert max(progress[:-1]) <= 90

    payload = events[-2]["payload"]
    assert payload["source_filename"] == "curso1.xlsx"
    student = payload["students"][0]
    assert student["matricula"] == "A001"
    assert student["summary_fuentes_datos_segura"] == "Documenta sus fuentes con rigor."
    assert "summary_a" not in student

    assert trackers[0].state is not ProgressState.ESTIMATING


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected_message",
    [
        (ProcessingServiceError("HTTP 502", status_code=502), "Error al procesar el archivo en el servidor."),
        (JSONParsingError("La respuesta del servidor no es un JSON válido"), "La respuesta del servidor no es un JSON válido"),
        (RuntimeError("boom"), "Ocurrió un error inesperado en el servidor."),
    ],
)
async def test_stream_failure_emits_error_and_cancels_progress(monkeypatch, trackers, error, expected_message):
    async def fake_process(*_args):
        raise error

    monkeypatch.setattr(stream_orchestrator, "process_spreadsheet", fake_process)
    events = await _collect(_stream_processing_logic("curso1.xlsx", b"data", "req-2"))

    assert events[-1] == {"type": "error", "message": expected_message}
    assert "data" not in [e["type"] for e in events]
    assert "finished" not in [e["type"] for e in events]
    assert trackers[0].state is ProgressState.IDLE
    assert trackers[0].value == 0


@pytest.mark.asyncio
async def test_stream_leaves_no_pending_progress_tasks(monkeypatch, sample_result, trackers):
    monkeypatch.setattr(settings, "progress_clear_delay", 10.0)

    async def fake_process(*_args):
        return sample_result

    monkeypatch.setattr(stream_orchestrator, "process_spreadsheet", fake_process)
    events = await _collect(_stream_processing_logic("curso1.xlsx", b"data", "req-3"))
    await asyncio.sleep(0.01)

    assert events[-1]["type"] == "finished"
    assert trackers[0].state is ProgressState.IDLE
    assert [t for t in asyncio.all_tasks() if t is not asyncio.current_task()] == []

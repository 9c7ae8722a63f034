import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any
from uuid import uuid4

from app.core.exceptions import ConfigurationError
from app.core.exceptions import PipelineError
from app.generation_logic.file_processing import media_type_for
from app.generation_logic.progress import ProgressTracker
from app.services.processing_client import JSONParsingError
from app.services.processing_client import ProcessingServiceError
from app.services.processing_client import process_spreadsheet

__all__ = [
    "_create_stream_event",
    "_stream_processing_logic",
]

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.1


# ---------------------------------------------------------------------------
# NDJSON event helper
# ---------------------------------------------------------------------------


def _create_stream_event(
    event_type: str,
    message: str | None = None,
    payload: dict[str, Any] | None = None,
    progress: int | None = None,
) -> str:
    """Serialize one stream event to an NDJSON line."""
    event: dict[str, Any] = {"type": event_type}
    if message is not None:
        event["message"] = message
    if payload is not None:
        event["payload"] = payload
    if progress is not None:
        event["progress"] = progress
    return json.dumps(event, ensure_ascii=False) + "\n"


def _progress_events(tracker: ProgressTracker) -> list[str]:
    return [_create_stream_event("progress", progress=value) for value in tracker.drain()]


# ---------------------------------------------------------------------------
# Main streaming orchestrator
# ---------------------------------------------------------------------------


async def _stream_processing_logic(
    filename: str,
    contents: bytes,
    request_id: str | None = None,
) -> AsyncIterator[str]:
    """Send the validated spreadsheet to the processing service, yielding NDJSON
    events (progress, status, data, error, finished) that the dashboard consumes.
    """
    request_id = request_id or str(uuid4())
    logger.info("[%s] Initiating processing stream for %s (%d bytes)", request_id, filename, len(contents))

    tracker: ProgressTracker | None = None
    process_task: asyncio.Task | None = None
    try:
        tracker = ProgressTracker()
        tracker.start()
        yield _create_stream_event("status", message="Procesando archivo…")

        process_task = asyncio.create_task(process_spreadsheet(filename, contents, media_type_for(filename), request_id))
        while True:
            done, _ = await asyncio.wait({process_task}, timeout=POLL_INTERVAL_SECONDS)
            for line in _progress_events(tracker):
                yield line
            if process_task in done:
                break

        result = process_task.result()
        tracker.finalize()
        for line in _progress_events(tracker):
            yield line

        payload = result.model_dump(by_alias=True)
        payload["source_filename"] = filename
        yield _create_stream_event(
            "data",
            message=f"Archivo procesado: {len(result.students)} estudiantes.",
            payload=payload,
        )
        yield _create_stream_event("finished", message="Stream completed successfully.")

    # ----------------------------------------------------------------------
    # Error handling
    # ----------------------------------------------------------------------
    except ConfigurationError as ce:
        logger.error("[%s] ConfigurationError during stream: %s", request_id, str(ce), exc_info=False)
        yield _create_stream_event("error", message=f"Error de configuración: {str(ce)}")
    except ProcessingServiceError as pse:
        logger.error("[%s] ProcessingServiceError during stream: %s", request_id, str(pse), exc_info=False)
        yield _create_stream_event("error", message="Error al procesar el archivo en el servidor.")
    except JSONParsingError as jpe:
        logger.error("[%s] JSONParsingError during stream: %s", request_id, str(jpe), exc_info=False)
        yield _create_stream_event("error", message=str(jpe))
    except PipelineError as pe:
        logger.error("[%s] PipelineError during stream: %s", request_id, str(pe), exc_info=False)
        yield _create_stream_event("error", message=f"Error de procesamiento: {str(pe)}")
    except Exception as e:  # General catch-all MUST be last
        logger.exception("[%s] Unexpected error during processing stream: %s", request_id, str(e))
        yield _create_stream_event("error", message="Ocurrió un error inesperado en el servidor.")
    finally:
        if process_task is not None and not process_task.done():
            process_task.cancel()
        # Pending tick and clear timers end with the stream
        if tracker is not None:
            tracker.cancel()
        logger.info("[%s] Processing stream finished.", request_id)

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any
from uuid import uuid4

from fastapi import APIRouter
from fastapi import Depends
from fastapi import File
from fastapi import Form
from fastapi import HTTPException
from fastapi import Request
from fastapi import UploadFile
from fastapi.responses import StreamingResponse

from app.core.exceptions import PipelineError
from app.core.security import INVALID_CREDENTIALS_MESSAGE
from app.core.security import check_credentials
from app.core.security import verify_credentials
from app.generation_logic.file_processing import _validate_uploaded_spreadsheet
from app.generation_logic.report_finalization import _generate_and_stream_aggregate
from app.generation_logic.report_finalization import _generate_and_stream_archive
from app.generation_logic.report_finalization import _stream_result_json
from app.generation_logic.stream_orchestrator import _stream_processing_logic
from app.models.report_models import ReportRequest

# Error classes re-used in endpoint-level exception handling --------------
from app.services.archive import ArchiveError
from app.services.doc_builder import DocBuilderError

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

EMPTY_RESULT_MESSAGE = "No hay resultados para descargar"
DOWNLOAD_FAILED_MESSAGE = "No se pudo generar el archivo de descarga"


# --- Error Handling Decorator for download endpoints ---
def handle_download_errors(func: Callable) -> Callable:
    """Decorator to turn rendering and packaging failures into one 500 response."""

    @wraps(func)
    async def wrapper(request: Request, *args: Any, **kwargs: Any) -> StreamingResponse:
        # Generate request_id and store in request.state
        request_id = str(uuid4())
        request.state.request_id = request_id

        try:
            return await func(request, *args, **kwargs)
        except HTTPException:
            raise
        except (DocBuilderError, ArchiveError, PipelineError) as e:
            logger.error(
                "[%s] %s during download generation: %s",
                request_id,
                type(e).__name__,
                str(e),
                exc_info=False,  # Details are logged where the error originated
            )
            raise HTTPException(
                status_code=500,
                detail=f"{DOWNLOAD_FAILED_MESSAGE} (trace: {request_id})",
            ) from e
        except Exception as e:
            logger.error(
                "[%s] Unexpected error during download generation: %s",
                request_id,
                str(e),
                exc_info=True,
            )
            raise HTTPException(
                status_code=500,
                detail=f"{DOWNLOAD_FAILED_MESSAGE} (trace: {request_id})",
            ) from e

    return wrapper


@router.post("/login")
async def login(username: str = Form(...), password: str = Form(...)) -> dict[str, str]:
    """Checks the dashboard credentials entered on the login screen.

    Returns ``{"status": "ok"}`` on success. The browser then sends the same
    credentials as HTTP Basic on every other call.
    """
    if not check_credentials(username, password):
        logger.warning("Login rejected for user '%s'", username)
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS_MESSAGE)
    logger.info("Login accepted for user '%s'", username)
    return {"status": "ok"}


@router.post("/files/process", dependencies=[Depends(verify_credentials)])
async def process_file(file: UploadFile = File(...)) -> StreamingResponse:
    """Validates the uploaded spreadsheet and forwards it to the processing service.

    Validation failures are answered immediately (400/413). Otherwise the
    response is an NDJSON stream.

    Potential Stream Events:
    - `progress`: Estimated completion percentage (`progress` field).
    - `status`: Progress messages.
    - `data`: Evaluation result in wire shape plus `source_filename`.
    - `error`: Indicates a failure during processing.
    - `finished`: Indicates the stream has successfully completed.
    """
    request_id = str(uuid4())
    logger.info("[%s] /files/process called for %s", request_id, file.filename)

    filename, contents = await _validate_uploaded_spreadsheet(file, request_id)
    return StreamingResponse(
        _stream_processing_logic(filename, contents, request_id),
        media_type="application/x-ndjson",
    )


@router.post("/reports/aggregate", dependencies=[Depends(verify_credentials)])
@handle_download_errors
async def download_aggregate(request: Request, report: ReportRequest) -> StreamingResponse:
    """Returns every student of the result in one PDF (``{base}_informe1.pdf``)."""
    request_id = request.state.request_id
    logger.info("[%s] Aggregate report requested for %d students", request_id, len(report.result.students))

    response = await _generate_and_stream_aggregate(report, request_id)
    if response is None:
        raise HTTPException(status_code=404, detail=EMPTY_RESULT_MESSAGE)
    return response


@router.post("/reports/per-student", dependencies=[Depends(verify_credentials)])
@handle_download_errors
async def download_per_student(request: Request, report: ReportRequest) -> StreamingResponse:
    """Returns one PDF per student bundled in ``{base}_informes_por_estudiante.zip``."""
    request_id = request.state.request_id
    logger.info("[%s] Per-student reports requested for %d students", request_id, len(report.result.students))

    response = await _generate_and_stream_archive(report, request_id)
    if response is None:
        raise HTTPException(status_code=404, detail=EMPTY_RESULT_MESSAGE)
    return response


@router.post("/reports/json", dependencies=[Depends(verify_credentials)])
@handle_download_errors
async def download_result_json(request: Request, report: ReportRequest) -> StreamingResponse:
    request_id = request.state.request_id
    response = _stream_result_json(report, request_id)
    if response is None:
        raise HTTPException(status_code=404, detail=EMPTY_RESULT_MESSAGE)
    return response

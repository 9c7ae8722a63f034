"""Handles the final rendering of report documents and wraps them as downloads."""

import asyncio
import json
import logging

from fastapi.responses import StreamingResponse

from app.core.exceptions import PipelineError
from app.models.report_models import ReportRequest
from app.services.archive import ArchiveError
from app.services.archive import pack_documents_async
from app.services.doc_builder import DocBuilderError
from app.services.doc_builder import render_aggregate
from app.services.doc_builder import render_per_student
from app.services.download import JSON_MEDIA_TYPE
from app.services.download import PDF_MEDIA_TYPE
from app.services.download import ZIP_MEDIA_TYPE
from app.services.download import stream_download
from app.services.filenames import archive_filename
from app.services.filenames import derive_base_name
from app.services.filenames import result_json_filename

__all__ = [
    "_generate_and_stream_aggregate",
    "_generate_and_stream_archive",
    "_stream_result_json",
]

logger = logging.getLogger(__name__)


async def _generate_and_stream_aggregate(report: ReportRequest, request_id: str) -> StreamingResponse | None:
    """Render the multi-student PDF and stream it back as an attachment.

    Returns ``None`` when the result has no students.
    """
    base_name = derive_base_name(report.source_filename)
    try:
        document = await asyncio.to_thread(render_aggregate, report.result, base_name, request_id)
    except DocBuilderError as e:
        logger.error("[%s] Document builder error: %s", request_id, str(e), exc_info=True)
        raise e
    except Exception as e:
        logger.error("[%s] Failed to generate aggregate report: %s", request_id, str(e), exc_info=True)
        raise PipelineError("An unexpected error occurred while generating the aggregate report.") from e

    if document is None:
        return None
    return stream_download(document.content, document.filename, PDF_MEDIA_TYPE)


async def _generate_and_stream_archive(report: ReportRequest, request_id: str) -> StreamingResponse | None:
    """Render one PDF per student, pack them into a ZIP and stream the archive.

    Returns ``None`` when the result has no students.
    """
    if report.result.is_empty:
        logger.info("[%s] No students in result, skipping archive", request_id)
        return None

    base_name = derive_base_name(report.source_filename)
    try:
        documents = await asyncio.to_thread(render_per_student, report.result, base_name, request_id)
        archive_bytes = await pack_documents_async(documents, base_name, request_id)
    except (DocBuilderError, ArchiveError) as e:
        logger.error("[%s] Per-student report error: %s", request_id, str(e), exc_info=True)
        raise e
    except Exception as e:
        logger.error("[%s] Failed to generate per-student archive: %s", request_id, str(e), exc_info=True)
        raise PipelineError("An unexpected error occurred while generating the per-student archive.") from e

    filename = archive_filename(base_name)
    logger.info("[%s] Archive ready: %s (%d documents, %d bytes)", request_id, filename, len(documents), len(archive_bytes))
    return stream_download(archive_bytes, filename, ZIP_MEDIA_TYPE)


def _stream_result_json(report: ReportRequest, request_id: str) -> StreamingResponse | None:
    """Stream the evaluation result itself, in its wire shape, as an indented JSON file."""
    if report.result.is_empty:
        logger.info("[%s] No students in result, skipping JSON download", request_id)
        return None
    base_name = derive_base_name(report.source_filename)
    content = json.dumps(report.result.model_dump(by_alias=True), indent=2, ensure_ascii=False).encode("utf-8")
    return stream_download(content, result_json_filename(base_name), JSON_MEDIA_TYPE)

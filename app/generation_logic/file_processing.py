"""Validates the evaluation spreadsheet uploaded from the dashboard.

The spreadsheet is never parsed here beyond a structural check: the remote
processing service does the analysis. This module only makes sure that what
gets forwarded has an accepted extension, is not empty, fits the size limit
and, for ``.xlsx`` workbooks, can be opened at all.
"""

import asyncio
import io
import logging
import zipfile
from pathlib import Path

from fastapi import HTTPException
from fastapi import UploadFile
from openpyxl import load_workbook

from app.core.config import settings
from app.core.validation import ALLOWED_EXTENSIONS
from app.core.validation import EXPECTED_SHEETS
from app.core.validation import MIME_MAPPING

__all__ = [
    "_validate_uploaded_spreadsheet",
    "_missing_sheets",
    "media_type_for",
]

logger = logging.getLogger(__name__)


def media_type_for(filename: str) -> str:
    return MIME_MAPPING.get(Path(filename).suffix.lower(), "application/octet-stream")


def _missing_sheets(contents: bytes) -> list[str]:
    """Return the expected sheet names absent from an .xlsx workbook."""
    workbook = load_workbook(io.BytesIO(contents), read_only=True)
    try:
        present = set(workbook.sheetnames)
    finally:
        workbook.close()
    return [name for name in EXPECTED_SHEETS if name not in present]


async def _validate_uploaded_spreadsheet(f_obj: UploadFile, request_id: str) -> tuple[str, bytes]:
    filename = f_obj.filename or "unknown_file"
    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        logger.warning(
            "[%s] Rejected file with invalid extension: %s for file %s",
            request_id,
            ext,
            filename,
        )
        raise HTTPException(
            status_code=400,
            detail=f"Tipo de archivo no soportado ('{filename}'). Extensiones permitidas: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )

    try:
        await f_obj.seek(0)
        contents = await f_obj.read()
    except Exception as read_err:
        logger.error(
            "[%s] Failed to read file content for %s: %s",
            request_id,
            filename,
            read_err,
            exc_info=True,
        )
        raise HTTPException(
            status_code=400,
            detail=f"No se pudo leer '{filename}'.",
        ) from read_err

    size = len(contents)
    if size == 0:
        logger.warning("[%s] Rejected empty file: %s", request_id, filename)
        raise HTTPException(
            status_code=400,
            detail=f"El archivo '{filename}' está vacío y no puede procesarse.",
        )
    if size > settings.max_upload_size:
        logger.warning(
            "[%s] Rejected file exceeding size limit: %s (%d bytes)",
            request_id,
            filename,
            size,
        )
        raise HTTPException(
            status_code=413,
            detail=f"El archivo '{filename}' es demasiado grande ({size // (1024 * 1024)}MB). Límite: {settings.max_upload_size // (1024 * 1024)}MB",
        )

    if ext == ".xlsx":
        try:
            missing = await asyncio.to_thread(_missing_sheets, contents)
        except (zipfile.BadZipFile, KeyError, OSError, ValueError) as wb_err:
            logger.warning("[%s] Could not open workbook %s: %s", request_id, filename, wb_err)
            raise HTTPException(
                status_code=400,
                detail=f"El archivo '{filename}' no es un libro de Excel válido.",
            ) from wb_err
        if missing:
            # The processing service decides whether the workbook is usable
            logger.warning("[%s] Workbook %s is missing sheets: %s", request_id, filename, ", ".join(missing))

    logger.debug("[%s] File validation successful: %s (%d bytes)", request_id, filename, size)
    return filename, contents

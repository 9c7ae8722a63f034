"""Download filename helpers."""

import logging
import re

from app.core.config import settings

logger = logging.getLogger(__name__)

PDF_EXTENSION = "pdf"
AGGREGATE_REPORT_INDEX = 1

_FINAL_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def derive_base_name(source_filename: str | None) -> str:
    """Return the source filename without directories and its final extension.

    Falls back to ``settings.fallback_base_name`` when no usable name is known.
    """
    if not source_filename or not source_filename.strip():
        return settings.fallback_base_name
    name = re.split(r"[\\/]", source_filename.strip())[-1]
    base = _FINAL_EXTENSION_RE.sub("", name)
    if not base:
        logger.debug("Source filename %r has no base name, using fallback", source_filename)
        return settings.fallback_base_name
    return base


def aggregate_filename(base_name: str) -> str:
    return f"{base_name}_informe{AGGREGATE_REPORT_INDEX}.{PDF_EXTENSION}"


def archive_filename(base_name: str) -> str:
    return f"{base_name}_informes_por_estudiante.zip"


def result_json_filename(base_name: str) -> str:
    return f"{base_name}_resultado.json"

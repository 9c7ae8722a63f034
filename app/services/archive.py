"""Packs per-student documents into one ZIP archive.

Entry names follow ``{base}_{name}_{id}.pdf`` where the student name and id are
reduced to filesystem-safe tokens by an explicit character allow-list. Names
that are already taken get a numeric suffix, so no entry is ever overwritten.
"""

import asyncio
import io
import logging
import zipfile
from collections.abc import Iterable
from collections.abc import Mapping
from types import MappingProxyType
from uuid import uuid4

from app.core.config import settings
from app.models.report_models import RenderedDocument
from app.models.report_models import StudentRecord

logger = logging.getLogger(__name__)

# Accented letters of the Spanish locale kept as-is in filenames
ALLOWED_ACCENTED_LETTERS = frozenset("áéíóúÁÉÍÓÚñÑüÜ")
ALLOWED_PUNCTUATION = frozenset("_-")
REPLACEMENT_CHAR = "_"


class ArchiveError(Exception):
    """Raised when the archive cannot be built"""


def is_allowed_filename_char(ch: str) -> bool:
    """True for ASCII letters and digits, Spanish accented letters, ``_`` and ``-``."""
    return (ch.isascii() and ch.isalnum()) or ch in ALLOWED_ACCENTED_LETTERS or ch in ALLOWED_PUNCTUATION


def sanitize_filename_component(text: str) -> str:
    """Replace every disallowed character with one underscore.

    Adjacent replacements are not collapsed. The replacement character is
    itself allowed, so applying this twice gives the same result as once.
    """
    return "".join(ch if is_allowed_filename_char(ch) else REPLACEMENT_CHAR for ch in text)


def student_entry_name(base_name: str, student: StudentRecord, ext: str = "pdf") -> str:
    name = sanitize_filename_component(student.name)
    student_id = sanitize_filename_component(student.id)
    return f"{base_name}_{name}_{student_id}.{ext}"


def _with_suffix(name: str, counter: int) -> str:
    stem, dot, ext = name.rpartition(".")
    if not dot:
        return f"{name}_{counter}"
    return f"{stem}_{counter}.{ext}"


class ArchivePacker:
    """Collects named entries and writes them into a single ZIP buffer once."""

    def __init__(self, compression_level: int | None = None) -> None:
        self.compression_level = settings.archive_compression_level if compression_level is None else compression_level
        self._entries: dict[str, bytes] = {}
        self._finalized = False

    @property
    def entries(self) -> Mapping[str, bytes]:
        return MappingProxyType(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def unique_name(self, name: str) -> str:
        if name not in self._entries:
            return name
        counter = 2
        while _with_suffix(name, counter) in self._entries:
            counter += 1
        return _with_suffix(name, counter)

    def add(self, name: str, content: bytes) -> str:
        """Register an entry and return the name it was stored under."""
        if self._finalized:
            raise ArchiveError("archive already finalized")
        final_name = self.unique_name(name)
        if final_name != name:
            logger.warning("Archive entry '%s' already exists, storing as '%s'", name, final_name)
        self._entries[final_name] = content
        return final_name

    def finalize(self) -> bytes:
        """Write all entries, in insertion order, and return the ZIP bytes.

        Either every entry is written or ``ArchiveError`` is raised; the
        partially written buffer is discarded in that case.
        """
        if self._finalized:
            raise ArchiveError("archive already finalized")

        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=self.compression_level) as zf:
                for name, content in self._entries.items():
                    zf.writestr(name, content)
            data = buffer.getvalue()
        except Exception as err:
            logger.error("Archive packing failed after %d entries: %s", len(self._entries), err, exc_info=True)
            raise ArchiveError("failed to build archive") from err
        finally:
            buffer.close()

        self._finalized = True
        logger.debug("Archive finalized: %d entries, %d bytes", len(self._entries), len(data))
        return data


def pack_documents(
    pairs: Iterable[tuple[StudentRecord, RenderedDocument]],
    base_name: str,
    request_id: str | None = None,
) -> bytes:
    """Add every (student, document) pair to a new archive and finalize it."""
    rid = request_id or str(uuid4())
    packer = ArchivePacker()
    for student, document in pairs:
        packer.add(student_entry_name(base_name, student), document.content)
    logger.info("[%s] Packing %d documents into archive", rid, len(packer))
    return packer.finalize()


async def pack_documents_async(
    pairs: Iterable[tuple[StudentRecord, RenderedDocument]],
    base_name: str,
    request_id: str | None = None,
) -> bytes:
    """Run :func:`pack_documents` in a worker thread and wait for the full buffer."""
    return await asyncio.to_thread(pack_documents, list(pairs), base_name, request_id)

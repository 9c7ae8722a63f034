"""Hands finished in-memory buffers to a save action.

Two save actions exist: an HTTP attachment stream for the dashboard and a
local file write for scripts. Both wrap the content in a transient buffer
that is released whether or not the save succeeds.
"""

import io
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from urllib.parse import quote

from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
ZIP_MEDIA_TYPE = "application/zip"
JSON_MEDIA_TYPE = "application/json"

CHUNK_SIZE = 64 * 1024


@contextmanager
def transient_buffer(content: bytes) -> Iterator[io.BytesIO]:
    buffer = io.BytesIO(content)
    try:
        yield buffer
    finally:
        buffer.close()


def _quoted_fallback(filename: str) -> str:
    # Printable ASCII only, without the characters that end or escape a quoted-string
    return "".join(ch if ch.isascii() and ch.isprintable() and ch not in '"\\' else "_" for ch in filename)


def content_disposition(filename: str) -> str:
    """Attachment header value.

    Names that cannot travel verbatim inside the quoted ``filename`` (non-ASCII,
    quotes, backslashes, control characters) also get an RFC 5987 ``filename*``.
    """
    fallback = _quoted_fallback(filename)
    if fallback == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _iter_and_release(content: bytes, filename: str) -> Iterator[bytes]:
    with transient_buffer(content) as buffer:
        while chunk := buffer.read(CHUNK_SIZE):
            yield chunk
    logger.debug("Released download buffer for %s", filename)


def stream_download(content: bytes, filename: str, media_type: str) -> StreamingResponse:
    """Return *content* as an attachment response named *filename*."""
    logger.info("Sending download %s (%d bytes, %s)", filename, len(content), media_type)
    return StreamingResponse(
        _iter_and_release(content, filename),
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


def save_download(content: bytes, filename: str, directory: str | Path) -> Path:
    """Write *content* to ``directory/filename`` through a temporary file.

    The final file only appears once it is completely written. On failure the
    temporary file is removed and the error propagates.
    """
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / filename

    fd, tmp_name = tempfile.mkstemp(dir=target_dir, prefix=".download-", suffix=".part")
    tmp_path = Path(tmp_name)
    try:
        with transient_buffer(content) as buffer, os.fdopen(fd, "wb") as out:
            while chunk := buffer.read(CHUNK_SIZE):
                out.write(chunk)
        os.replace(tmp_path, target)
    except BaseException:
        logger.error("Saving %s failed, removing temporary file", target, exc_info=True)
        tmp_path.unlink(missing_ok=True)
        raise

    logger.info("Saved %s (%d bytes)", target, len(content))
    return target

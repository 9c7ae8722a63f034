import json
import logging
import re
from typing import Any

import httpx
from pydantic import ValidationError
from tenacity import RetryCallState
from tenacity import retry
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from app.core.config import settings
from app.models.report_models import EvaluationResult

# Configure module logger
logger = logging.getLogger(__name__)

PROCESS_ENDPOINT = "/api/files/process"
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ProcessingServiceError(Exception):
    """Raised when the processing service call fails"""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class JSONParsingError(Exception):
    """Raised when the processing service response is not a usable evaluation result"""


# ---------------------------------------------------------------
# Helper predicate for tenacity retry
# ---------------------------------------------------------------


def _should_retry_processing_call(retry_state: RetryCallState) -> bool:
    """Retry on transport failures and on 429/5xx answers."""
    if not retry_state.outcome:
        return False

    exc = retry_state.outcome.exception()
    if not exc:
        return False

    actual_exception = exc.__cause__ if isinstance(exc, ProcessingServiceError) and exc.__cause__ else exc
    if isinstance(actual_exception, httpx.TransportError):
        logger.debug("Transport error talking to processing service (%s). Retrying...", type(actual_exception).__name__)
        return True

    status = getattr(exc, "status_code", None)
    if status in RETRYABLE_STATUS_CODES:
        logger.debug("Retryable processing service status %s detected. Retrying...", status)
        return True
    return False


def _timeout_config() -> httpx.Timeout:
    return httpx.Timeout(settings.processing_connect_timeout, read=settings.processing_read_timeout)


@retry(
    wait=wait_exponential(multiplier=1, min=2, max=10),
    stop=stop_after_attempt(settings.processing_max_attempts),
    retry=_should_retry_processing_call,
    reraise=True,
)  # type: ignore
async def call_processing_service(filename: str, content: bytes, content_type: str, request_id: str) -> str:
    """POST the spreadsheet to the processing service and return the raw response text."""
    url = settings.processing_service_url.rstrip("/") + PROCESS_ENDPOINT
    logger.info("[%s] Sending '%s' (%d bytes) to processing service at %s", request_id, filename, len(content), url)

    try:
        async with httpx.AsyncClient(timeout=_timeout_config()) as client:
            rsp = await client.post(url, files={"file": (filename, content, content_type)})
    except httpx.HTTPError as e:
        logger.error("[%s] Processing service request failed: %s", request_id, str(e))
        raise ProcessingServiceError(f"Processing service unreachable: {str(e)}") from e

    if rsp.status_code >= 400:
        logger.error(
            "[%s] Processing service answered %d: %s",
            request_id,
            rsp.status_code,
            rsp.text[:500],
        )
        raise ProcessingServiceError(
            f"Processing service returned HTTP {rsp.status_code}",
            status_code=rsp.status_code,
        )

    logger.debug("[%s] Processing service response received, length: %d chars", request_id, len(rsp.text))
    return rsp.text


# ---------------------------------------------------------------
# JSON extractor helper
# ---------------------------------------------------------------
def extract_json(text: str) -> Any:
    """Parse JSON from the service response, tolerating markdown fences and extraneous text."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Initial JSON parse failed, attempting extraction strategies...")

    # Strategy 1: Markdown Code Fence Extraction
    match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text, re.DOTALL)
    if match:
        try:
            result = json.loads(match.group(1))
            logger.info("Parsed JSON from markdown code fence.")
            return result
        except json.JSONDecodeError:
            logger.warning("Failed to parse JSON from fenced block, trying next strategy...")

    # Strategy 2: first JSON object in the text
    obj_start = text.find("{")
    if obj_start == -1:
        logger.error("No JSON object marker found in response")
        raise JSONParsingError("La respuesta del servidor no es un JSON válido")
    try:
        obj, _ = json.JSONDecoder().raw_decode(text, obj_start)
        logger.info("Parsed JSON using raw_decode.")
        return obj
    except json.JSONDecodeError as e:
        logger.error("Failed to parse JSON using raw_decode: %s", str(e))
        raise JSONParsingError("La respuesta del servidor no es un JSON válido") from e


def parse_evaluation_result(text: str, request_id: str) -> EvaluationResult:
    data = extract_json(text)
    if not isinstance(data, dict):
        logger.error("[%s] Expected a JSON object from processing service, got %s", request_id, type(data).__name__)
        raise JSONParsingError("La respuesta del servidor no tiene el formato esperado")
    try:
        result = EvaluationResult.model_validate(data)
    except ValidationError as e:
        logger.error("[%s] Evaluation result failed shape validation: %s", request_id, e.errors())
        raise JSONParsingError("La respuesta del servidor no tiene el formato esperado") from e
    logger.info("[%s] Evaluation result parsed: %d students", request_id, len(result.students))
    return result


async def process_spreadsheet(filename: str, content: bytes, content_type: str, request_id: str) -> EvaluationResult:
    raw = await call_processing_service(filename, content, content_type, request_id)
    return parse_evaluation_result(raw, request_id)

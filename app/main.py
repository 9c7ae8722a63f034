import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import DOWNLOAD_FAILED_MESSAGE
from app.api.routes import router
from app.core.config import settings
from app.core.exceptions import PipelineError
from app.core.logging import setup_logging
from app.services.archive import ArchiveError
from app.services.doc_builder import DocBuilderError
from app.services.processing_client import JSONParsingError
from app.services.processing_client import ProcessingServiceError

setup_logging()

app = FastAPI(title="FeedbackAI Reports")

logger = logging.getLogger(__name__)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error("HTTP exception: %s (status: %s)", exc.detail, exc.status_code)
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold exception instances that are not JSON serializable
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    # Log the detailed Pydantic validation errors to the server console
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    return JSONResponse(
        {"error": "Input validation failed", "details": jsonable_errors(exc)},
        status_code=422,
    )


@app.exception_handler(DocBuilderError)
async def docbuilder_exception_handler(_request: Request, exc: DocBuilderError) -> JSONResponse:
    logger.error("DocBuilder error: %s", str(exc))
    return JSONResponse({"error": DOWNLOAD_FAILED_MESSAGE}, status_code=500)


@app.exception_handler(ArchiveError)
async def archive_exception_handler(_request: Request, exc: ArchiveError) -> JSONResponse:
    logger.error("Archive error: %s", str(exc))
    return JSONResponse({"error": DOWNLOAD_FAILED_MESSAGE}, status_code=500)


@app.exception_handler(PipelineError)
async def pipeline_exception_handler(_request: Request, exc: PipelineError) -> JSONResponse:
    logger.error("Pipeline error: %s", str(exc))
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.exception_handler(ProcessingServiceError)
async def processing_exception_handler(_request: Request, exc: ProcessingServiceError) -> JSONResponse:
    logger.error("Processing service error: %s", str(exc))
    return JSONResponse({"error": str(exc)}, status_code=502)


@app.exception_handler(JSONParsingError)
async def jsonparsing_exception_handler(_request: Request, exc: JSONParsingError) -> JSONResponse:
    logger.error("JSON parsing error: %s", str(exc))
    return JSONResponse({"error": str(exc)}, status_code=502)


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)

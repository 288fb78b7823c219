"""FastAPI application exposing the upload store."""

import logging
import secrets
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from media_uploads.config import LOG_LEVEL, MAX_FILE_SIZE
from media_uploads.domain.models import (
    Base64UploadRequest,
    UploadedFilesResponse,
    UploadedImageResponse,
)
from media_uploads.security.problem_details import Problem, problem_response, upload_problem
from media_uploads.security.uploads import IncomingFile, StorageFailure, UploadError, validate
from media_uploads.services.upload_store import UploadStore, build_upload_store

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


def _ensure_correlation_id(request: Request) -> str:
    """Return existing correlation id or generate a new one."""
    correlation_id = getattr(request.state, "correlation_id", None)
    if not correlation_id:
        correlation_id = request.headers.get("X-Correlation-ID") or secrets.token_urlsafe(16)
        request.state.correlation_id = correlation_id
    return correlation_id


def get_upload_store(request: Request) -> UploadStore:
    """Dependency returning the store the application was built with."""
    return request.app.state.upload_store


async def _read_incoming(file: UploadFile) -> IncomingFile:
    # One byte past the limit is enough to reject oversized files.
    raw = await file.read(MAX_FILE_SIZE + 1)
    await file.close()
    return IncomingFile(filename=file.filename or "", data=raw)


def create_app(upload_store: Optional[UploadStore] = None) -> FastAPI:
    """Build the application around a single, explicitly passed upload store."""
    app = FastAPI(title="Media Uploads API", version="1.0.0")
    app.state.upload_store = upload_store or build_upload_store()

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        correlation_id = _ensure_correlation_id(request)
        response = await call_next(request)
        response.headers.setdefault("X-Correlation-ID", correlation_id)
        return response

    @app.exception_handler(UploadError)
    async def upload_error_handler(request: Request, exc: UploadError):
        if isinstance(exc, StorageFailure):
            logger.error("Storage failure on %s: %s", request.url.path, exc.message)
        else:
            logger.warning("Upload rejected (%s): %s", exc.code, exc.message)
        return problem_response(
            upload_problem(exc, instance=str(request.url.path)),
            correlation_id=_ensure_correlation_id(request),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("Request validation failed on %s", request.url.path)
        problem = Problem(
            status=422,
            code="validation_error",
            title="Invalid request",
            detail="Request payload failed validation",
            instance=str(request.url.path),
        )
        return problem_response(problem, correlation_id=_ensure_correlation_id(request))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        code = "not_found" if exc.status_code == status.HTTP_404_NOT_FOUND else "http_error"
        problem = Problem(
            status=exc.status_code,
            code=code,
            title="HTTP error",
            detail=detail,
            instance=str(request.url.path),
        )
        return problem_response(
            problem,
            correlation_id=_ensure_correlation_id(request),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s", exc, exc_info=True)
        problem = Problem(
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="internal_error",
            title="Internal server error",
            detail="Internal server error",
            instance=str(request.url.path),
        )
        return problem_response(problem, correlation_id=_ensure_correlation_id(request))

    @app.post(
        "/api/v1/uploads",
        response_model=UploadedFilesResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def upload_files(
        files: List[UploadFile] = File(...),
        store: UploadStore = Depends(get_upload_store),
    ):
        """Validate every file of the batch, then store them all."""
        incoming = [await _read_incoming(file) for file in files]
        for item in incoming:
            validate(item)

        paths = await run_in_threadpool(store.save_files, incoming)
        return UploadedFilesResponse(paths=paths)

    @app.post(
        "/api/v1/uploads/base64",
        response_model=UploadedImageResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def upload_base64(
        body: Base64UploadRequest,
        store: UploadStore = Depends(get_upload_store),
    ):
        """Store an inline image and its thumbnail."""
        stored = await run_in_threadpool(store.save_base64, body.data)
        return UploadedImageResponse(path=stored.path, thumbnail_path=stored.thumbnail_path)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()

from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from toastnotes_api.dependencies import get_attachments, get_settings
from toastnotes_api.domain.exceptions import NoteStoreError
from toastnotes_api.infrastructure.logging_setup import configure_logging
from toastnotes_api.interface.api.routes import router


def _error(status_code: int, message: str, request_id: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
        headers={"X-Request-ID": request_id},
    )


def create_app() -> FastAPI:
    app = FastAPI(title="ToastNotes API", version="0.1.0")

    settings = get_settings()
    configure_logging(settings.log_level)
    logger = logging.getLogger("toastnotes.api")

    settings.notes_dir.mkdir(parents=True, exist_ok=True)
    get_attachments().ensure_dir()

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.max_body_bytes:
            logger.warning("request_too_large", extra={"rid": request_id, "path": request.url.path, "bytes": int(length)})
            return _error(413, "request_too_large", request_id)

        try:
            response = await call_next(request)
        except Exception:
            dt_ms = (time.perf_counter() - start) * 1000.0
            logger.exception("request_error", extra={"rid": request_id, "path": request.url.path, "ms": dt_ms})
            return _error(500, "internal_error", request_id, request_id=request_id)

        dt_ms = (time.perf_counter() - start) * 1000.0
        fields = {
            "rid": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "ms": dt_ms,
        }
        if settings.api_debug_log:
            fields["query"] = request.url.query
        logger.info("request", extra=fields)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(NoteStoreError)
    async def note_store_error(request: Request, exc: NoteStoreError):
        request_id = getattr(request.state, "request_id", "")
        if exc.status_code >= 500:
            logger.error("store_error", extra={"rid": request_id, "path": request.url.path, "error": exc.message})
        return _error(exc.status_code, exc.message, request_id)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        request_id = getattr(request.state, "request_id", "")
        return _error(422, "invalid_request", request_id)

    app.include_router(router)

    app.mount(settings.public_prefix, StaticFiles(directory=settings.notes_dir), name="files")
    if settings.static_dir is not None and settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="editor")

    return app


app = create_app()

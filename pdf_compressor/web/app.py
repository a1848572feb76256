from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.datastructures import UploadFile

from pdf_compressor import __version__
from pdf_compressor.errors import (
    CompressorError,
    PayloadTooLargeError,
    ProcessingError,
    ValidationError,
)
from pdf_compressor.processor import compress_pdf_bytes
from pdf_compressor.settings import Settings
from pdf_compressor.utils import (
    PDF_CONTENT_TYPE,
    content_disposition,
    human_bytes,
    output_filename,
    safe_filename,
)

log = logging.getLogger("pdf_compressor.web")

BASE_DIR = Path(__file__).parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _adapter(request: Request) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(log, {"request_id": getattr(request.state, "request_id", "-")})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="PDF Compressor", version=__version__)
    app.state.settings = settings
    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", "").strip() or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(CompressorError)
    async def compressor_error_handler(request: Request, exc: CompressorError):
        # 5xx are logged with traceback where they are raised
        if exc.status_code < 500:
            _adapter(request).info("Rejected upload: %s", exc.message)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request):
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "title": "PDF Compressor",
                "max_upload_bytes": settings.max_upload_bytes,
                "max_upload_h": human_bytes(settings.max_upload_bytes),
            },
        )

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.post("/api/compress")
    async def compress(request: Request):
        adapter = _adapter(request)

        # Read the form directly so a text value in "file" is a 400, not a 422.
        form = await request.form()
        file = form.get("file")
        if file is None:
            raise ValidationError("No file provided")
        if not isinstance(file, UploadFile) or file.content_type != PDF_CONTENT_TYPE:
            raise ValidationError("File must be a PDF")

        data = await file.read()
        if len(data) > settings.max_upload_bytes:
            raise PayloadTooLargeError(
                f"File too large ({human_bytes(len(data))}). Max {human_bytes(settings.max_upload_bytes)}"
            )

        filename = safe_filename(file.filename)
        adapter.info("Compressing %s (%s)", filename, human_bytes(len(data)))

        try:
            result = await asyncio.to_thread(compress_pdf_bytes, data)
        except ProcessingError:
            adapter.exception("Failed to compress %s", filename)
            raise
        except Exception as e:
            adapter.exception("Unexpected failure compressing %s", filename)
            raise ProcessingError("Failed to compress PDF", details=str(e) or "Unknown error") from e

        adapter.info(
            "Compressed %s: %s -> %s (%s%%)",
            filename,
            human_bytes(result.original_size),
            human_bytes(result.compressed_size),
            result.ratio_h,
        )

        return Response(
            content=result.data,
            status_code=200,
            media_type=PDF_CONTENT_TYPE,
            headers={
                "Content-Disposition": content_disposition(output_filename(filename)),
                "X-Original-Size": str(result.original_size),
                "X-Compressed-Size": str(result.compressed_size),
                "X-Compression-Ratio": result.ratio_h,
            },
        )

    return app

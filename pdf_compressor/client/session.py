"""Upload session: the client-side state machine of a compression attempt.

idle -> compressing-client (hybrid only) -> compressing-server -> done | error

A session holds at most one selected file and runs at most one attempt at a
time; :attr:`UploadSession.can_compress` is the guard a front-end uses to
enable its compress action.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

import requests

from pdf_compressor.errors import (
    CompressorError,
    NetworkError,
    ServerError,
    SizeExceededError,
)
from pdf_compressor.processor import (
    CompressionResult,
    compress_pdf_bytes,
    compression_ratio,
    format_ratio,
)
from pdf_compressor.utils import PDF_CONTENT_TYPE, human_bytes, output_filename

log = logging.getLogger("pdf_compressor.client")

NOT_A_PDF_MESSAGE = "Please select a PDF file"
FALLBACK_ERROR_MESSAGE = "Compression failed"
COMPRESS_PATH = "/api/compress"

DownloadSink = Callable[[str, bytes], Any]


class Stage(str, Enum):
    IDLE = "idle"
    COMPRESSING_CLIENT = "compressing-client"
    COMPRESSING_SERVER = "compressing-server"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class SelectedFile:
    name: str
    data: bytes
    content_type: Optional[str]

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CompressionStats:
    original_size: int
    final_size: int
    ratio_percent: float
    intermediate_size: Optional[int] = None

    @property
    def ratio_h(self) -> str:
        return format_ratio(self.ratio_percent)


def _int_header(headers: Mapping[str, str], name: str) -> int:
    try:
        return int(headers.get(name) or 0)
    except ValueError:
        return 0


def _float_header(headers: Mapping[str, str], name: str) -> float:
    try:
        return float(headers.get(name) or 0)
    except ValueError:
        return 0.0


class UploadSession:
    """
    Drives one file through the optional local pass and the server endpoint.

    ``http`` is anything with a requests-style ``post(url, files=..., headers=...)``:
    a :class:`requests.Session` in production, FastAPI's ``TestClient`` in tests.
    """

    def __init__(
        self,
        http: Any,
        server_url: str,
        *,
        precompress: bool = True,
        max_upload_bytes: int = 4 * 1024 * 1024,
        compressor: Callable[[bytes], CompressionResult] = compress_pdf_bytes,
        on_download: Optional[DownloadSink] = None,
    ):
        self.http = http
        self.server_url = server_url.rstrip("/")
        self.precompress = precompress
        self.max_upload_bytes = max_upload_bytes
        self.compressor = compressor
        self.on_download = on_download

        self.stage = Stage.IDLE
        self.file: Optional[SelectedFile] = None
        self.error_message: Optional[str] = None
        self.stats: Optional[CompressionStats] = None
        self.request_id: Optional[str] = None

    # ----------------------------
    # State
    # ----------------------------

    @property
    def is_compressing(self) -> bool:
        return self.stage in (Stage.COMPRESSING_CLIENT, Stage.COMPRESSING_SERVER)

    @property
    def can_compress(self) -> bool:
        return self.file is not None and not self.is_compressing and self.stats is None

    @property
    def download_name(self) -> Optional[str]:
        return output_filename(self.file.name) if self.file else None

    def select_file(self, name: str, data: bytes, content_type: Optional[str]) -> bool:
        """Select a file; returns False (and records the error) when it is not a PDF."""
        self.stats = None
        if content_type != PDF_CONTENT_TYPE:
            self.file = None
            self.stage = Stage.ERROR
            self.error_message = NOT_A_PDF_MESSAGE
            log.info("Rejected %s: declared type %s", name, content_type)
            return False

        self.file = SelectedFile(name=name, data=data, content_type=content_type)
        self.stage = Stage.IDLE
        self.error_message = None
        return True

    def reset(self) -> None:
        self.file = None
        self.stats = None
        self.error_message = None
        self.stage = Stage.IDLE

    # ----------------------------
    # Compression
    # ----------------------------

    def compress(self) -> Optional[CompressionStats]:
        """Run one attempt. Returns None when no attempt may start.

        Failures leave the session in the ``error`` stage and are re-raised.
        """
        if not self.can_compress:
            return None

        file = self.file
        self.error_message = None
        # Sent as X-Request-ID so client and server log lines share one id.
        self.request_id = uuid.uuid4().hex[:12]
        adapter = logging.LoggerAdapter(log, {"request_id": self.request_id})
        try:
            payload = file.data
            intermediate_size = None
            if self.precompress:
                self.stage = Stage.COMPRESSING_CLIENT
                payload = self._compress_locally(file, adapter)
                intermediate_size = len(payload)

            self.stage = Stage.COMPRESSING_SERVER
            response = self._upload(file.name, payload)
            stats = self._stats_from_headers(response.headers, file, intermediate_size)

            if self.on_download is not None:
                self.on_download(output_filename(file.name), response.content)
        except CompressorError as e:
            self.stage = Stage.ERROR
            self.error_message = e.message
            adapter.warning("Compression of %s failed: %s", file.name, e.message)
            raise
        except Exception:
            self.stage = Stage.ERROR
            self.error_message = "An error occurred"
            adapter.exception("Compression of %s failed", file.name)
            raise

        self.stats = stats
        self.stage = Stage.DONE
        adapter.info(
            "Compressed %s: %s -> %s (%s%%)",
            file.name,
            human_bytes(stats.original_size),
            human_bytes(stats.final_size),
            stats.ratio_h,
        )
        return stats

    def _compress_locally(self, file: SelectedFile, adapter: logging.LoggerAdapter) -> bytes:
        result = self.compressor(file.data)
        adapter.info(
            "Local pass for %s: %s -> %s",
            file.name,
            human_bytes(result.original_size),
            human_bytes(result.compressed_size),
        )
        if len(result.data) > self.max_upload_bytes:
            raise SizeExceededError(
                f"Compressed file is still too large ({human_bytes(len(result.data))}). "
                f"Max {human_bytes(self.max_upload_bytes)}"
            )
        return result.data

    def _upload(self, name: str, payload: bytes):
        url = f"{self.server_url}{COMPRESS_PATH}"
        try:
            response = self.http.post(
                url,
                files={"file": (name, payload, PDF_CONTENT_TYPE)},
                headers={"X-Request-ID": self.request_id},
            )
        except requests.RequestException as e:
            raise NetworkError("Could not reach the compression service", details=str(e)) from e

        if 200 <= response.status_code < 300:
            return response

        try:
            body = response.json()
        except ValueError:
            raise NetworkError(FALLBACK_ERROR_MESSAGE)
        message = body.get("error") if isinstance(body, dict) else None
        raise ServerError(
            message or FALLBACK_ERROR_MESSAGE,
            status_code=response.status_code,
            details=body.get("details") if isinstance(body, dict) else None,
        )

    def _stats_from_headers(
        self,
        headers: Mapping[str, str],
        file: SelectedFile,
        intermediate_size: Optional[int],
    ) -> CompressionStats:
        final_size = _int_header(headers, "X-Compressed-Size")
        if intermediate_size is None:
            return CompressionStats(
                original_size=_int_header(headers, "X-Original-Size"),
                final_size=final_size,
                ratio_percent=_float_header(headers, "X-Compression-Ratio"),
            )
        # The server only saw the intermediate file; measure against what the user picked.
        return CompressionStats(
            original_size=file.size,
            final_size=final_size,
            ratio_percent=compression_ratio(file.size, final_size),
            intermediate_size=intermediate_size,
        )

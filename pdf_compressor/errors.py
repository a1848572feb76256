"""Error taxonomy shared by the web endpoint and the upload client."""

from __future__ import annotations

from typing import Any, Dict, Optional


class CompressorError(Exception):
    """Base class; ``status_code`` is the HTTP status the web app answers with."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(CompressorError):
    """Missing file or wrong declared content type."""

    status_code = 400


class PayloadTooLargeError(CompressorError):
    status_code = 413


class ProcessingError(CompressorError):
    """pikepdf could not load or serialize the document."""

    status_code = 500


class SizeExceededError(CompressorError):
    """Locally compressed file is still above the upload ceiling."""

    status_code = 413


class NetworkError(CompressorError):
    status_code = 502


class ServerError(CompressorError):
    """Endpoint answered with a non-success status."""

    def __init__(self, message: str, status_code: int, details: Optional[str] = None):
        super().__init__(message, details=details)
        self.status_code = status_code

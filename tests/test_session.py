import pikepdf
import pytest
import requests

from pdf_compressor.client import Stage, UploadSession
from pdf_compressor.errors import NetworkError, ProcessingError, ServerError, SizeExceededError
from pdf_compressor.processor import CompressionResult, compression_ratio

MIB = 1024 * 1024


class FakeResponse:
    def __init__(self, status_code=200, headers=None, content=b"", json_body=None):
        self.status_code = status_code
        self.headers = headers or {}
        self.content = content
        self._json_body = json_body

    def json(self):
        if self._json_body is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_body


class RecordingHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, files=None, headers=None):
        self.calls.append((url, files, headers))
        if self.error is not None:
            raise self.error
        return self.response


def _session(http, **kwargs):
    kwargs.setdefault("precompress", False)
    return UploadSession(http, "http://compressor.local", **kwargs)


def test_non_pdf_selection_shows_error_without_network():
    http = RecordingHttp()
    session = _session(http)

    assert session.select_file("notes.txt", b"hello", "text/plain") is False

    assert session.error_message == "Please select a PDF file"
    assert session.stage == Stage.ERROR
    assert session.file is None
    assert session.compress() is None
    assert http.calls == []


def test_valid_selection_clears_previous_error():
    session = _session(RecordingHttp())
    session.select_file("notes.txt", b"hello", "text/plain")

    assert session.select_file("report.pdf", b"%PDF-1.7", "application/pdf") is True

    assert session.error_message is None
    assert session.stage == Stage.IDLE
    assert session.can_compress


def test_hybrid_size_exceeded_sends_nothing():
    http = RecordingHttp()

    def oversized(data):
        blob = b"0" * int(4.5 * MIB)
        return CompressionResult(data=blob, original_size=len(data), compressed_size=len(blob))

    session = _session(http, precompress=True, max_upload_bytes=4 * MIB, compressor=oversized)
    session.select_file("scan.pdf", b"0" * (10 * MIB), "application/pdf")

    with pytest.raises(SizeExceededError):
        session.compress()

    assert http.calls == []
    assert session.stage == Stage.ERROR
    assert session.error_message.startswith("Compressed file is still too large")
    assert session.stats is None


def test_action_is_disabled_while_in_flight():
    seen = {}
    session = None

    def probe(data):
        seen["stage"] = session.stage
        seen["can_compress"] = session.can_compress
        seen["nested"] = session.compress()
        return CompressionResult(data=data, original_size=len(data), compressed_size=len(data))

    http = RecordingHttp(FakeResponse(headers={"X-Compressed-Size": "8"}, content=b"%PDF-1.7"))
    session = _session(http, precompress=True, compressor=probe)
    session.select_file("report.pdf", b"%PDF-1.7", "application/pdf")

    session.compress()

    assert seen == {"stage": Stage.COMPRESSING_CLIENT, "can_compress": False, "nested": None}
    assert len(http.calls) == 1


def test_server_error_message_is_surfaced():
    http = RecordingHttp(FakeResponse(status_code=500, json_body={"error": "Failed to compress PDF", "details": "x"}))
    session = _session(http)
    session.select_file("report.pdf", b"%PDF-1.7", "application/pdf")

    with pytest.raises(ServerError) as exc_info:
        session.compress()

    assert exc_info.value.status_code == 500
    assert session.error_message == "Failed to compress PDF"
    assert session.stage == Stage.ERROR


def test_error_without_message_uses_fallback():
    http = RecordingHttp(FakeResponse(status_code=400, json_body={}))
    session = _session(http)
    session.select_file("report.pdf", b"%PDF-1.7", "application/pdf")

    with pytest.raises(ServerError):
        session.compress()

    assert session.error_message == "Compression failed"


def test_non_json_error_body_uses_fallback():
    http = RecordingHttp(FakeResponse(status_code=502, content=b"<html>Bad Gateway</html>"))
    session = _session(http)
    session.select_file("report.pdf", b"%PDF-1.7", "application/pdf")

    with pytest.raises(NetworkError):
        session.compress()

    assert session.error_message == "Compression failed"


def test_transport_failure_is_a_network_error():
    http = RecordingHttp(error=requests.ConnectionError("connection refused"))
    session = _session(http)
    session.select_file("report.pdf", b"%PDF-1.7", "application/pdf")

    with pytest.raises(NetworkError) as exc_info:
        session.compress()

    assert "connection refused" in exc_info.value.details
    assert session.stage == Stage.ERROR


def test_failed_attempt_can_be_retried_by_user():
    http = RecordingHttp(error=requests.ConnectionError("down"))
    session = _session(http)
    session.select_file("report.pdf", b"%PDF-1.7", "application/pdf")
    with pytest.raises(NetworkError):
        session.compress()

    http.error = None
    http.response = FakeResponse(
        headers={"X-Original-Size": "8", "X-Compressed-Size": "6", "X-Compression-Ratio": "25.00"},
        content=b"%PDF-1",
    )
    stats = session.compress()

    assert stats.ratio_percent == 25.0
    assert len(http.calls) == 2


def test_reset_returns_to_idle():
    http = RecordingHttp(FakeResponse(headers={"X-Compressed-Size": "6"}, content=b"%PDF-1"))
    session = _session(http)
    session.select_file("report.pdf", b"%PDF-1.7", "application/pdf")
    session.compress()

    session.reset()

    assert session.stage == Stage.IDLE
    assert session.file is None
    assert session.stats is None
    assert session.error_message is None
    assert not session.can_compress


def test_server_only_flow_against_app(client, sample_pdf):
    downloads = []
    session = UploadSession(client, "http://testserver", precompress=False,
                            on_download=lambda name, data: downloads.append((name, data)))
    session.select_file("report.pdf", sample_pdf, "application/pdf")

    stats = session.compress()

    assert session.stage == Stage.DONE
    assert stats.original_size == len(sample_pdf)
    assert stats.intermediate_size is None
    [(name, data)] = downloads
    assert name == "compressed_report.pdf"
    assert stats.final_size == len(data)
    assert stats.ratio_h == f"{compression_ratio(len(sample_pdf), len(data)):.2f}"
    assert not session.can_compress


def test_hybrid_flow_against_app(client, sample_pdf):
    downloads = []
    session = UploadSession(client, "http://testserver", precompress=True,
                            on_download=lambda name, data: downloads.append((name, data)))
    session.select_file("Annual Report 2024.pdf", sample_pdf, "application/pdf")

    stats = session.compress()

    [(name, data)] = downloads
    assert name == "compressed_Annual Report 2024.pdf"
    assert session.download_name == name
    assert stats.original_size == len(sample_pdf)
    assert stats.intermediate_size is not None
    assert stats.final_size == len(data)
    assert stats.ratio_percent == compression_ratio(len(sample_pdf), len(data))


def test_hybrid_flow_with_broken_pdf_never_uploads():
    http = RecordingHttp()
    session = _session(http, precompress=True)
    session.select_file("broken.pdf", b"", "application/pdf")

    with pytest.raises(ProcessingError):
        session.compress()

    assert http.calls == []
    assert session.stage == Stage.ERROR
    assert session.error_message == "Failed to compress PDF"


def test_password_locked_pdf_fails_locally_without_upload(pdf_factory):
    locked = pdf_factory(encryption=pikepdf.Encryption(owner="owner-secret", user="user-secret"))
    http = RecordingHttp()
    session = _session(http, precompress=True)
    session.select_file("locked.pdf", locked, "application/pdf")

    with pytest.raises(ProcessingError):
        session.compress()

    assert http.calls == []
    assert session.error_message == "Failed to compress PDF"


def test_upload_carries_request_id():
    http = RecordingHttp(FakeResponse(headers={"X-Compressed-Size": "6"}, content=b"%PDF-1"))
    session = _session(http)
    session.select_file("report.pdf", b"%PDF-1.7", "application/pdf")

    session.compress()

    [(url, files, headers)] = http.calls
    assert url == "http://compressor.local/api/compress"
    assert files["file"] == ("report.pdf", b"%PDF-1.7", "application/pdf")
    assert headers == {"X-Request-ID": session.request_id}
    assert session.request_id

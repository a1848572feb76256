import io
import sys
from pathlib import Path

import pikepdf
import pytest
from fastapi.testclient import TestClient

# Ensure the project root is on sys.path so tests can import `pdf_compressor` without installing.
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from pdf_compressor.settings import Settings  # noqa: E402
from pdf_compressor.web import create_app  # noqa: E402


def build_pdf(pages: int = 1, encryption=None, **info: str) -> bytes:
    """Uncompressed PDF with blank pages and the given Info fields."""
    pdf = pikepdf.new()
    for _ in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
    for key, value in info.items():
        pdf.docinfo[pikepdf.Name("/" + key)] = value
    out = io.BytesIO()
    pdf.save(
        out,
        compress_streams=False,
        object_stream_mode=pikepdf.ObjectStreamMode.disable,
        encryption=encryption or False,
    )
    pdf.close()
    return out.getvalue()


@pytest.fixture
def sample_pdf() -> bytes:
    return build_pdf(
        pages=3,
        Title="Quarterly report",
        Author="Jane Doe",
        Subject="Finance",
        Keywords="q3, revenue",
        Producer="Word Processor 12",
        Creator="Writer",
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        host="127.0.0.1",
        port=8000,
        logs_dir=tmp_path / "logs",
        log_level="INFO",
        max_upload_bytes=5 * 1024 * 1024,
        client_max_upload_bytes=4 * 1024 * 1024,
        server_url="http://testserver",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def pdf_factory():
    return build_pdf

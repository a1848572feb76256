"""PDF compression utilities."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path

import pikepdf

from pdf_compressor.errors import ProcessingError

# Info dictionary entries blanked before saving.
METADATA_KEYS = (
    pikepdf.Name.Title,
    pikepdf.Name.Author,
    pikepdf.Name.Subject,
    pikepdf.Name.Keywords,
    pikepdf.Name.Producer,
    pikepdf.Name.Creator,
)


@dataclass(frozen=True)
class CompressionResult:
    data: bytes
    original_size: int
    compressed_size: int

    @property
    def ratio_percent(self) -> float:
        return compression_ratio(self.original_size, self.compressed_size)

    @property
    def ratio_h(self) -> str:
        return format_ratio(self.ratio_percent)


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """Percentage of bytes saved; negative when the output grew."""
    if original_size <= 0:
        return 0.0
    return (1 - compressed_size / original_size) * 100


def format_ratio(ratio: float) -> str:
    return f"{ratio:.2f}"


def clear_metadata(pdf: pikepdf.Pdf) -> None:
    info = pdf.docinfo
    for key in METADATA_KEYS:
        info[key] = pikepdf.String("")


def compress_pdf_bytes(data: bytes) -> CompressionResult:
    """Compress an in-memory PDF using pikepdf.

    This step does not change PDF semantics; it primarily reduces size by:
    - blanking the document information fields
    - compressing streams
    - packing objects into object streams

    Encrypted documents that open with an empty password are accepted and
    written back unencrypted. Documents locked with a user password cannot be
    loaded and raise ProcessingError.

    Raises
    ------
    ProcessingError
        The buffer is not a PDF pikepdf can load or serialize.
    """
    original_size = len(data)
    out = io.BytesIO()
    try:
        with pikepdf.Pdf.open(io.BytesIO(data), password="") as pdf:
            clear_metadata(pdf)
            pdf.save(
                out,
                compress_streams=True,
                object_stream_mode=pikepdf.ObjectStreamMode.generate,
            )
    except (pikepdf.PdfError, pikepdf.PasswordError) as e:
        raise ProcessingError("Failed to compress PDF", details=str(e) or type(e).__name__) from e

    compressed = out.getvalue()
    return CompressionResult(
        data=compressed,
        original_size=original_size,
        compressed_size=len(compressed),
    )


def shrink_pdf(input_path: str | Path, output_path: str | Path) -> CompressionResult:
    """File-to-file variant of :func:`compress_pdf_bytes`.

    Parameters
    ----------
    input_path:
        Source PDF.
    output_path:
        Destination PDF.
    """
    result = compress_pdf_bytes(Path(input_path).read_bytes())
    Path(output_path).write_bytes(result.data)
    return result

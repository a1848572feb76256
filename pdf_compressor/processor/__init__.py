"""PDF processing services."""

from .shrink import (
    CompressionResult,
    compress_pdf_bytes,
    compression_ratio,
    format_ratio,
    shrink_pdf,
)

__all__ = [
    "CompressionResult",
    "compress_pdf_bytes",
    "compression_ratio",
    "format_ratio",
    "shrink_pdf",
]

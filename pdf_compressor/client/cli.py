from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Callable, List, Optional

import requests

from pdf_compressor.client.session import CompressionStats, UploadSession
from pdf_compressor.errors import CompressorError
from pdf_compressor.logging_setup import setup_logging
from pdf_compressor.processor import shrink_pdf
from pdf_compressor.settings import Settings
from pdf_compressor.utils import human_bytes, output_filename

log = logging.getLogger("pdf_compressor.client.cli")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-compressor-client",
        description="Strip metadata from a PDF and compress it with object streams",
    )
    parser.add_argument("input_file", help="Path to input PDF file")
    parser.add_argument("--url", default=settings.server_url,
                        help=f"Compression service base URL (default: {settings.server_url})")
    parser.add_argument("--out-dir", default=".", help="Directory for the compressed copy (default: .)")
    parser.add_argument("--server-only", action="store_true",
                        help="Upload the file as-is instead of compressing it locally first")
    parser.add_argument("--offline", action="store_true",
                        help="Only compress locally; do not contact the service")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: INFO)")
    return parser


def _file_writer(out_dir: Path) -> Callable[[str, bytes], None]:
    def write(name: str, data: bytes) -> None:
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / name).write_bytes(data)
        log.info("Saved %s", out_dir / name)

    return write


def _print_stats(stats: CompressionStats) -> None:
    print(f"Original size:     {human_bytes(stats.original_size)}")
    if stats.intermediate_size is not None:
        print(f"After local pass:  {human_bytes(stats.intermediate_size)}")
    print(f"Compressed size:   {human_bytes(stats.final_size)}")
    print(f"Compression:       {stats.ratio_h}%")


def run_offline(input_path: Path, out_dir: Path) -> CompressionStats:
    out_dir.mkdir(parents=True, exist_ok=True)
    result = shrink_pdf(input_path, out_dir / output_filename(input_path.name))
    return CompressionStats(
        original_size=result.original_size,
        final_size=result.compressed_size,
        ratio_percent=result.ratio_percent,
    )


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)

    setup_logging(None, level=args.log_level)

    input_path = Path(args.input_file)
    out_dir = Path(args.out_dir)
    if not input_path.is_file():
        print(f"ERROR: Input file not found: {input_path}", file=sys.stderr)
        return 1

    try:
        if args.offline:
            stats = run_offline(input_path, out_dir)
        else:
            content_type, _ = mimetypes.guess_type(input_path.name)
            with requests.Session() as http:
                session = UploadSession(
                    http,
                    args.url,
                    precompress=not args.server_only,
                    max_upload_bytes=settings.client_max_upload_bytes,
                    on_download=_file_writer(out_dir),
                )
                if not session.select_file(input_path.name, input_path.read_bytes(), content_type):
                    print(f"ERROR: {session.error_message}", file=sys.stderr)
                    return 1
                stats = session.compress()
    except CompressorError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        if e.details:
            print(f"Details: {e.details}", file=sys.stderr)
        return 1

    _print_stats(stats)
    return 0


if __name__ == "__main__":
    sys.exit(main())

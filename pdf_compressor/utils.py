from __future__ import annotations

import os
import re
from urllib.parse import quote

PDF_CONTENT_TYPE = "application/pdf"
OUTPUT_PREFIX = "compressed_"


def human_bytes(n: int) -> str:
    units = ["B", "KB", "MB", "GB", "TB"]
    x = float(n or 0)
    i = 0
    while x >= 1024.0 and i < len(units) - 1:
        x /= 1024.0
        i += 1
    if i == 0:
        return f"{int(x)} {units[i]}"
    return f"{x:.2f} {units[i]}"


def output_filename(original: str) -> str:
    """Name the compressed copy is downloaded under."""
    return f"{OUTPUT_PREFIX}{original}"


def safe_filename(filename: str) -> str:
    # Browsers may send a full path; quotes and control chars would break the header.
    name = os.path.basename((filename or "").replace("\\", "/"))
    name = re.sub(r'["\r\n]', "_", name)
    return name or "document.pdf"


def content_disposition(filename: str) -> str:
    """``attachment`` disposition, with an RFC 5987 ``filename*`` for non-ASCII names."""
    quoted = quote(filename)
    if quoted == filename:
        return f'attachment; filename="{filename}"'
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=utf-8''{quoted}"

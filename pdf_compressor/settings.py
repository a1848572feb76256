from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    logs_dir: Path
    log_level: str

    # Server-side body ceiling and the stricter one the hybrid client applies
    # to its locally compressed upload.
    max_upload_bytes: int
    client_max_upload_bytes: int

    server_url: str

    @staticmethod
    def from_env() -> "Settings":
        host = os.getenv("HOST", "0.0.0.0").strip()
        port = _env_int("PORT", 8000)

        logs_dir = Path(os.getenv("LOGS_DIR", "logs"))
        log_level = os.getenv("LOG_LEVEL", "INFO").strip()

        max_upload = _env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024)  # 5 MiB
        client_max_upload = _env_int("CLIENT_MAX_UPLOAD_BYTES", 4 * 1024 * 1024)  # 4 MiB

        server_url = os.getenv("COMPRESSOR_URL", "http://127.0.0.1:8000").strip().rstrip("/")

        return Settings(
            host=host,
            port=port,
            logs_dir=logs_dir,
            log_level=log_level,
            max_upload_bytes=max_upload,
            client_max_upload_bytes=client_max_upload,
            server_url=server_url,
        )

import logging

import uvicorn

from pdf_compressor.logging_setup import setup_logging
from pdf_compressor.settings import Settings
from pdf_compressor.web import create_app


def main() -> None:
    settings = Settings.from_env()

    setup_logging(settings.logs_dir, level=settings.log_level)

    log = logging.getLogger("pdf_compressor.main")

    app = create_app(settings)

    log.info("Serving on %s:%s (max upload %s bytes)", settings.host, settings.port, settings.max_upload_bytes)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()

"""HTTP server runner.

Run with: python -m invoicehub.api.server
Or: uvicorn invoicehub.api.main:app
"""

import logging

import uvicorn

from invoicehub.shared.config import get_settings
from invoicehub.shared.log_config import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the API server."""
    settings = get_settings()
    configure_logging(settings)

    logger.info(f"Starting {settings.service_name} on http://{settings.host}:{settings.port}")
    logger.info(f"Record store: {settings.record_backend}, blob store: {settings.blob_backend}")

    uvicorn.run(
        "invoicehub.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

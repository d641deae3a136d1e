"""Entry point for the Firesize web service."""

from __future__ import annotations

import logging
import os
import sys

import uvicorn


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("FIRESIZE_LOG_LEVEL", "INFO").upper(),
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def run() -> int:
    """Serve the processing API with uvicorn."""

    configure_logging()
    uvicorn.run(
        "firesize.web.server:app",
        host=os.environ.get("FIRESIZE_HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(run())

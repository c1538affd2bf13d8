"""Logging configuration shared by the app and uvicorn."""

import logging
import os
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Optional[Union[int, str]] = None, format_string: Optional[str] = None) -> None:
    """Configure root logging to stdout.

    Args:
        level: Log level name or number. Defaults to LOG_LEVEL, then INFO.
        format_string: Optional override for the record format.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format=format_string or DEFAULT_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    # The OpenAI SDK logs every request at INFO; keep it quieter than the app.
    logging.getLogger("httpx").setLevel(logging.WARNING)

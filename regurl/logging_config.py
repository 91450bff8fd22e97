from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger import jsonlogger


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
        level: int = logging.WARNING,
        force_format: Optional[str] = None,
) -> None:
    """
    Configure the root logger for the CLI.

    Modes:
    - plain text (default, terminal use)
    - JSON (log shipping)

    Selection order:
        1) force_format argument ("json" or "plain") if provided
        2) env var REGURL_LOG_FORMAT
        3) default = "plain"
    """

    if force_format is not None:
        format_mode = force_format
    else:
        format_mode = os.getenv("REGURL_LOG_FORMAT", "plain").lower()

    logger = logging.getLogger()
    logger.setLevel(level)

    handler = logging.StreamHandler()

    if format_mode == "json":
        formatter = jsonlogger.JsonFormatter(LOG_FORMAT)
    else:
        formatter = logging.Formatter(LOG_FORMAT)

    handler.setFormatter(formatter)

    # Replace any existing handlers to avoid duplicate logs
    logger.handlers.clear()
    logger.addHandler(handler)

from __future__ import annotations

import logging

from tryon.core.config import settings

# Configure structured logging (stream by default, file when LOG_FILE is set)
_handler_kwargs: dict = {}
if settings.log_file:
    _handler_kwargs["filename"] = settings.log_file

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
    **_handler_kwargs,
)

log = logging.getLogger("tryon")

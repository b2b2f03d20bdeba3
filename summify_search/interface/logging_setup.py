"""Root logger configuration for the API and CLI entry points."""

from __future__ import annotations

import logging
from pathlib import Path

from summify_search.config.settings import AppSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(settings: AppSettings | None = None) -> None:
    """Console handler always, file handler when ``SUMMIFY_LOG_FILE`` is set."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    settings = settings or AppSettings()
    level = getattr(logging, settings.log_level, logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(level)

"""Logging utilities for ASG target runtime components."""

from __future__ import annotations

import logging
import sys
from typing import Iterable, Optional


_HANDLER_NAME = "_asgtarget_stream_handler"

_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")


def configure_runtime_logging(level: int = logging.INFO, formatter: Optional[logging.Formatter] = None) -> None:
    """Ensure that runtime processes emit logs to stdout with a consistent format."""
    root_logger = logging.getLogger()
    if formatter is None:
        formatter = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")

    existing = None
    for handler in root_logger.handlers:
        if getattr(handler, _HANDLER_NAME, False):
            existing = handler
            break

    if existing is None:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        setattr(stream_handler, _HANDLER_NAME, True)
        root_logger.addHandler(stream_handler)
    else:
        existing.setFormatter(formatter)
        existing.setLevel(level)

    if root_logger.level > level or root_logger.level == logging.NOTSET:
        root_logger.setLevel(level)


def demote_noisy_loggers(level: int = logging.WARNING, names: Iterable[str] = _NOISY_LOGGERS) -> None:
    """AWS SDK loggers are chatty at INFO; keep them out of the runtime output."""
    for name in names:
        logging.getLogger(name).setLevel(level)

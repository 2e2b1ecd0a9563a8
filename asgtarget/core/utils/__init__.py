"""Utility helpers for the ASG target."""

from .logging import configure_runtime_logging, demote_noisy_loggers  # noqa: F401

__all__ = [
    "configure_runtime_logging",
    "demote_noisy_loggers",
]

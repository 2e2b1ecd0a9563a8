"""
Drain collaborator contract used during scale-in.
"""

from __future__ import annotations

from .base import DrainRequest, NodeDrainer, load_drainer, validate_drained

__all__ = [
    "DrainRequest",
    "NodeDrainer",
    "load_drainer",
    "validate_drained",
]

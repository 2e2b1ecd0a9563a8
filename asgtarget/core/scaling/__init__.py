"""
Scaling decision helpers.
"""

from __future__ import annotations

from .direction import calculate_direction, scale_direction

__all__ = [
    "calculate_direction",
    "scale_direction",
]

"""
Public facing controller facades for the ASG target.
"""

from .ray_target import RayTarget  # noqa: F401

__all__ = ["RayTarget"]

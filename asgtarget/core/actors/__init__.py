"""
Ray actor implementations that host the ASG target.
"""

from .config import ActorConfig  # noqa: F401
from .target_actor import TargetActor  # noqa: F401

__all__ = [
    "ActorConfig",
    "TargetActor",
]

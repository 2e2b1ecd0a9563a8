"""
Domain entities used throughout the ASG target.
"""

from .types import (  # noqa: F401
    ActivityRecord,
    Direction,
    GroupSnapshot,
    GroupState,
    PluginInfo,
    ScaleDirection,
    ScaleOutcome,
    ScaleResult,
    ScalingAction,
    StatusVerdict,
)

__all__ = [
    "ActivityRecord",
    "Direction",
    "GroupSnapshot",
    "GroupState",
    "PluginInfo",
    "ScaleDirection",
    "ScaleOutcome",
    "ScaleResult",
    "ScalingAction",
    "StatusVerdict",
]

"""
Common type definitions shared across the reader, executors and controllers.

All values here are call-scoped: they are produced for a single ``scale`` or
``status`` invocation and never cached.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from asgtarget.config.keys import META_KEY_LAST_EVENT, PluginType


@dataclass(frozen=True)
class ScalingAction:
    """Desired count produced by the upstream strategy."""

    count: int
    reason: Optional[str] = None
    meta: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"Desired count must be non-negative, got {self.count}")


@dataclass(frozen=True)
class GroupSnapshot:
    """Point-in-time view of an Auto Scaling Group."""

    name: str
    desired_capacity: int
    status: Optional[str] = None
    instance_ids: FrozenSet[str] = frozenset()
    ready_instance_ids: FrozenSet[str] = frozenset()
    min_size: int = 0
    max_size: int = 0

    def __post_init__(self) -> None:
        if self.desired_capacity < 0:
            raise ValueError(f"Desired capacity must be non-negative, got {self.desired_capacity}")

    @property
    def transitioning(self) -> bool:
        """The provider itself reports the group as mid-transition (e.g. deleting)."""
        return self.status is not None

    @property
    def converged(self) -> bool:
        return len(self.ready_instance_ids) == self.desired_capacity


@dataclass(frozen=True)
class ActivityRecord:
    """One entry in a group's scaling activity history."""

    activity_id: str
    progress: int
    status_code: str = ""
    end_time: Optional[datetime] = None
    description: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.progress <= 100:
            raise ValueError(f"Activity progress must be within 0-100, got {self.progress}")

    @property
    def finished(self) -> bool:
        return self.end_time is not None

    @property
    def end_time_ns(self) -> Optional[int]:
        """End time as integer nanoseconds since the epoch (UTC)."""
        if self.end_time is None:
            return None
        seconds = calendar.timegm(self.end_time.utctimetuple())
        return seconds * 1_000_000_000 + self.end_time.microsecond * 1_000


@dataclass(frozen=True)
class GroupState:
    """A snapshot together with its activity history (most recent first)."""

    snapshot: GroupSnapshot
    activities: tuple = ()

    @property
    def latest_activity(self) -> Optional[ActivityRecord]:
        return self.activities[0] if self.activities else None


class Direction(str, Enum):
    """Scaling direction derived from current and desired counts."""

    IN = "in"
    OUT = "out"
    NONE = "none"


@dataclass(frozen=True)
class ScaleDirection:
    """
    Tagged result of the direction calculation.

    ``amount`` is a delta for ``IN`` and an absolute desired capacity for
    ``OUT``; the two executors consume it differently.
    """

    amount: int
    direction: Direction

    def __post_init__(self) -> None:
        if self.direction is Direction.NONE:
            if self.amount != 0:
                raise ValueError("NONE direction must carry a zero amount")
        elif self.amount <= 0:
            raise ValueError(f"{self.direction.value} direction requires a positive amount")


class ScaleOutcome(str, Enum):
    """What a ``scale`` call ended up doing."""

    SCALED_IN = "scaled_in"
    SCALED_OUT = "scaled_out"
    NOOP_NEEDED = "noop_needed"


@dataclass(frozen=True)
class ScaleResult:
    outcome: ScaleOutcome
    message: str
    previous_count: int
    requested_count: int

    @property
    def changed(self) -> bool:
        return self.outcome is not ScaleOutcome.NOOP_NEEDED

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "message": self.message,
            "previous_count": self.previous_count,
            "requested_count": self.requested_count,
        }


@dataclass(frozen=True)
class StatusVerdict:
    """Readiness report returned to the orchestrating host."""

    ready: bool
    count: int
    last_event_timestamp: Optional[int] = None

    @property
    def meta(self) -> Optional[Dict[str, str]]:
        if self.last_event_timestamp is None:
            return None
        return {META_KEY_LAST_EVENT: str(self.last_event_timestamp)}

    def to_dict(self) -> dict:
        return {"ready": self.ready, "count": self.count, "meta": self.meta}


@dataclass(frozen=True)
class PluginInfo:
    name: str
    plugin_type: PluginType

    def to_dict(self) -> dict:
        return {"name": self.name, "plugin_type": self.plugin_type.value}

"""
Provider capability interface and the group state reader built on it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from asgtarget.core.entities.types import ActivityRecord, GroupSnapshot, GroupState
from asgtarget.core.errors import TargetError

logger = logging.getLogger(__name__)

DESCRIBE_GROUP_CONTEXT = "failed to describe AWS Autoscaling Group"
DESCRIBE_ACTIVITIES_CONTEXT = "failed to describe AWS Autoscaling Group activities"

# DescribeScalingActivities accepts at most this many ActivityIds per request.
MAX_ACTIVITY_IDS = 50


class GroupProvider(ABC):
    """
    Everything the target needs from a cloud provider.

    Implementations raise :class:`~asgtarget.core.errors.ProviderError` (or a
    subclass) for every failure and never return partial data.
    """

    @abstractmethod
    def describe_group(self, name: str) -> GroupSnapshot:
        """Return the single group called ``name``."""

    @abstractmethod
    def describe_activities(
        self,
        name: str,
        activity_ids: Optional[Sequence[str]] = None,
        max_records: Optional[int] = None,
    ) -> List[ActivityRecord]:
        """
        Return scaling activities for ``name``, most recent first.

        Callers pass at most :data:`MAX_ACTIVITY_IDS` ids per call.
        """

    @abstractmethod
    def set_desired_capacity(self, name: str, desired_capacity: int) -> None:
        """Set the group's absolute desired capacity."""

    @abstractmethod
    def terminate_instance(self, instance_id: str, *, decrement: bool = True) -> ActivityRecord:
        """Terminate one instance, optionally shrinking desired capacity with it."""


class GroupStateReader:
    """Read-only view over a provider; every call goes to the provider."""

    def __init__(self, provider: GroupProvider):
        self.provider = provider

    def describe_group(self, name: str) -> GroupSnapshot:
        return self.provider.describe_group(name)

    def describe_activities(
        self,
        name: str,
        activity_ids: Optional[Sequence[str]] = None,
        max_records: Optional[int] = None,
    ) -> List[ActivityRecord]:
        return self.provider.describe_activities(name, activity_ids=activity_ids, max_records=max_records)

    def read(self, name: str, *, activity_ids: Optional[Sequence[str]] = None) -> GroupState:
        """Fetch the snapshot and its activity history in one call."""
        try:
            snapshot = self.describe_group(name)
        except TargetError as exc:
            raise exc.add_context(DESCRIBE_GROUP_CONTEXT)
        try:
            activities = self.describe_activities(name, activity_ids=activity_ids)
        except TargetError as exc:
            raise exc.add_context(DESCRIBE_ACTIVITIES_CONTEXT)
        logger.debug(
            "Group[%s] desired=%s status=%s activities=%d",
            name,
            snapshot.desired_capacity,
            snapshot.status,
            len(activities),
        )
        return GroupState(snapshot=snapshot, activities=tuple(activities))

"""
Scale-out and scale-in executors.

Both executors receive the snapshot the orchestrator already read, so the
action taken always matches the state the decision was made on.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from asgtarget.config.keys import CONFIG_KEY_CLASS
from asgtarget.core.config import TargetSettings
from asgtarget.core.drain import DrainRequest, NodeDrainer, validate_drained
from asgtarget.core.entities.types import ActivityRecord, GroupSnapshot
from asgtarget.core.errors import (
    DrainError,
    ProviderError,
    ScalingTimeoutError,
    TargetError,
    TerminationError,
)
from asgtarget.core.provider import GroupProvider
from asgtarget.core.provider.base import DESCRIBE_ACTIVITIES_CONTEXT, MAX_ACTIVITY_IDS

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], None]

_ACTIVITY_DONE_CODES = frozenset({"Successful", "Failed", "Cancelled"})
_ACTIVITY_FAILED_CODES = frozenset({"Failed", "Cancelled"})


class ScaleOutExecutor:
    """Raises desired capacity and waits for the new instances to become healthy."""

    def __init__(self, provider: GroupProvider, settings: TargetSettings, *, sleep: SleepFn = time.sleep):
        self.provider = provider
        self.settings = settings
        self._sleep = sleep

    def scale_out(
        self,
        snapshot: GroupSnapshot,
        new_desired_capacity: int,
        settings: Optional[TargetSettings] = None,
    ) -> None:
        settings = settings or self.settings
        logger.info(
            "Group[%s] scaling out: desired %d -> %d",
            snapshot.name,
            snapshot.desired_capacity,
            new_desired_capacity,
        )
        try:
            self.provider.set_desired_capacity(snapshot.name, new_desired_capacity)
        except TargetError as exc:
            raise exc.add_context("failed to update AutoScaling Group desired capacity")

        self._wait_for_instances(snapshot.name, new_desired_capacity, settings)
        logger.info("Group[%s] scale out complete (%d instances)", snapshot.name, new_desired_capacity)

    def _wait_for_instances(self, name: str, desired: int, settings: TargetSettings) -> None:
        ready = 0
        for attempt in range(1, settings.retry_limit + 1):
            try:
                current = self.provider.describe_group(name)
            except TargetError as exc:
                raise exc.add_context("failed to check AutoScaling Group instance count")
            ready = len(current.ready_instance_ids)
            if current.desired_capacity == desired and current.converged:
                return
            logger.debug(
                "Group[%s] waiting for instances: %d/%d healthy (attempt %d/%d)",
                name,
                ready,
                desired,
                attempt,
                settings.retry_limit,
            )
            if attempt < settings.retry_limit:
                self._sleep(settings.retry_interval)

        raise ScalingTimeoutError(
            f"AutoScaling Group {name} reached {ready} of {desired} healthy instances "
            f"after {settings.retry_limit} checks"
        )


class ScaleInExecutor:
    """
    Shrinks a group by draining nodes and terminating their instances.

    Each instance is terminated with a desired-capacity decrement so the
    group's target and its membership shrink together. Termination failures
    are collected rather than aborting the loop; instances already removed
    are never re-added.
    """

    def __init__(
        self,
        provider: GroupProvider,
        drainer: Optional[NodeDrainer],
        settings: TargetSettings,
        *,
        sleep: SleepFn = time.sleep,
    ):
        self.provider = provider
        self.drainer = drainer
        self.settings = settings
        self._sleep = sleep

    def scale_in(
        self,
        snapshot: GroupSnapshot,
        amount: int,
        config: Mapping[str, str],
        settings: Optional[TargetSettings] = None,
    ) -> List[str]:
        """Remove ``amount`` instances and return the ids that were terminated."""
        settings = settings or self.settings
        request = DrainRequest(
            group=snapshot.name,
            eligible_instance_ids=snapshot.instance_ids,
            count=amount,
            deadline=settings.drain_deadline,
            node_class=config.get(CONFIG_KEY_CLASS),
        )
        drained = self._drain(request)

        terminated: List[str] = []
        failures: Dict[str, Exception] = {}
        activities: Dict[str, str] = {}
        for instance_id in drained:
            try:
                activity = self.provider.terminate_instance(instance_id, decrement=True)
            except TargetError as exc:
                logger.warning("Group[%s] failed to terminate %s: %s", snapshot.name, instance_id, exc)
                failures[instance_id] = exc
                continue
            terminated.append(instance_id)
            activities[activity.activity_id] = instance_id
            logger.info(
                "Group[%s] terminating %s (activity %s)",
                snapshot.name,
                instance_id,
                activity.activity_id,
            )

        wait_error: Optional[TargetError] = None
        pending: List[str] = []
        if activities:
            failed, pending, wait_error = self._wait_for_activities(snapshot.name, activities, settings)
            for instance_id, exc in failed.items():
                terminated.remove(instance_id)
                failures[instance_id] = exc
            for instance_id in pending:
                terminated.remove(instance_id)

        hook_error: Optional[TargetError] = None
        if terminated and self.drainer is not None:
            try:
                self.drainer.post_scale_in(terminated)
            except Exception as exc:
                logger.warning("Group[%s] post-scale in hook failed: %s", snapshot.name, exc)
                hook_error = TargetError(f"failed to perform post-scale in tasks: {exc}")
                hook_error.__cause__ = exc

        errors = [error for error in (wait_error, hook_error) if error is not None]
        if failures:
            raise TerminationError(terminated, failures, pending=pending, errors=errors) from (
                errors[0] if errors else None
            )
        if wait_error is not None:
            raise wait_error from hook_error
        if hook_error is not None:
            raise hook_error

        logger.info("Group[%s] scale in complete, removed %s", snapshot.name, ", ".join(terminated))
        return terminated

    def _drain(self, request: DrainRequest) -> List[str]:
        if self.drainer is None:
            raise DrainError("no node drainer configured")

        logger.info(
            "Group[%s] draining %d node(s) (deadline=%.0fs, class=%s)",
            request.group,
            request.count,
            request.deadline,
            request.node_class,
        )
        try:
            instance_ids = self.drainer.select_and_drain(request)
        except TargetError:
            raise
        except TimeoutError as exc:
            raise ScalingTimeoutError(
                f"node drain did not complete within {request.deadline:.0f}s: {exc}"
            ) from exc
        except Exception as exc:
            raise DrainError(f"failed to perform pre-scale in tasks: {exc}") from exc

        try:
            return validate_drained(request, instance_ids)
        except ValueError as exc:
            raise DrainError(f"failed to perform pre-scale in tasks: {exc}") from exc

    def _wait_for_activities(
        self,
        name: str,
        activities: Mapping[str, str],
        settings: TargetSettings,
    ) -> Tuple[Dict[str, Exception], List[str], Optional[TargetError]]:
        """
        Wait for termination activities.

        Returns the failures keyed by instance id, the instances whose
        activities never finished, and the error that stopped the wait.
        """
        pending = set(activities)
        failed: Dict[str, Exception] = {}
        for attempt in range(1, settings.retry_limit + 1):
            try:
                records = self._describe_pending(name, sorted(pending))
            except TargetError as exc:
                error = exc.add_context(DESCRIBE_ACTIVITIES_CONTEXT)
                return failed, self._instances_for(activities, pending), error

            for record in records:
                if record.activity_id not in pending or record.status_code not in _ACTIVITY_DONE_CODES:
                    continue
                pending.discard(record.activity_id)
                if record.status_code in _ACTIVITY_FAILED_CODES:
                    instance_id = activities[record.activity_id]
                    failed[instance_id] = ProviderError(
                        f"termination activity {record.activity_id} ended {record.status_code}"
                    )
            if not pending:
                return failed, [], None
            logger.debug(
                "Group[%s] waiting for %d termination activities (attempt %d/%d)",
                name,
                len(pending),
                attempt,
                settings.retry_limit,
            )
            if attempt < settings.retry_limit:
                self._sleep(settings.retry_interval)

        stuck = self._instances_for(activities, pending)
        error = ScalingTimeoutError(
            f"{len(pending)} termination activities on AutoScaling Group {name} "
            f"still running after {settings.retry_limit} checks ({', '.join(stuck)})"
        )
        return failed, stuck, error

    def _describe_pending(self, name: str, activity_ids: Sequence[str]) -> List[ActivityRecord]:
        records: List[ActivityRecord] = []
        for start in range(0, len(activity_ids), MAX_ACTIVITY_IDS):
            batch = activity_ids[start : start + MAX_ACTIVITY_IDS]
            records.extend(self.provider.describe_activities(name, activity_ids=batch))
        return records

    @staticmethod
    def _instances_for(activities: Mapping[str, str], activity_ids) -> List[str]:
        return sorted(activities[activity_id] for activity_id in activity_ids)

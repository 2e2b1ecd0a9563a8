"""
boto3-backed implementation of :class:`GroupProvider` for AWS Auto Scaling Groups.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from asgtarget.config.keys import BOTO3_CREDENTIAL_ARGS, CONFIG_KEY_REGION, CONFIG_VALUE_REGION_DEFAULT
from asgtarget.core.entities.types import ActivityRecord, GroupSnapshot
from asgtarget.core.errors import AmbiguityError, GroupNotFoundError, ProviderError

from .base import GroupProvider

logger = logging.getLogger(__name__)

_READY_LIFECYCLE_STATE = "InService"
_READY_HEALTH_STATUS = "Healthy"


def _client_error_message(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "Unknown")
        return f"{code}: {error.get('Message', str(exc))}"
    return str(exc)


def create_session(config: Mapping[str, str]) -> boto3.session.Session:
    """Build a boto3 session from the operator-supplied configuration mapping."""
    session_args: Dict[str, str] = {
        "region_name": config.get(CONFIG_KEY_REGION) or CONFIG_VALUE_REGION_DEFAULT,
    }
    for config_key, boto_arg in BOTO3_CREDENTIAL_ARGS.items():
        value = config.get(config_key)
        if value:
            session_args[boto_arg] = value
    return boto3.session.Session(**session_args)


class AwsAsgProvider(GroupProvider):
    """Talks to the AWS Auto Scaling API."""

    def __init__(self, client: Any):
        self.client = client

    @classmethod
    def from_config(cls, config: Mapping[str, str]) -> "AwsAsgProvider":
        session = create_session(config)
        logger.info("AWS Auto Scaling client configured (region=%s)", session.region_name)
        return cls(session.client("autoscaling"))

    # ------------------------------------------------------------------
    # Reads

    def describe_group(self, name: str) -> GroupSnapshot:
        try:
            response = self.client.describe_auto_scaling_groups(AutoScalingGroupNames=[name])
        except (BotoCoreError, ClientError) as exc:
            raise ProviderError(_client_error_message(exc)) from exc

        groups = response.get("AutoScalingGroups", [])
        if not groups:
            raise GroupNotFoundError(name)
        if len(groups) > 1:
            raise AmbiguityError(
                f"AutoScaling Group name {name} matched {len(groups)} groups",
                identifier=name,
                matches=len(groups),
            )
        return self._snapshot_from_response(name, groups[0])

    @staticmethod
    def _snapshot_from_response(name: str, group: Mapping[str, Any]) -> GroupSnapshot:
        try:
            instances = group.get("Instances", [])
            instance_ids = frozenset(item["InstanceId"] for item in instances)
            ready_ids = frozenset(
                item["InstanceId"]
                for item in instances
                if item.get("LifecycleState") == _READY_LIFECYCLE_STATE
                and item.get("HealthStatus") == _READY_HEALTH_STATUS
            )
            return GroupSnapshot(
                name=group.get("AutoScalingGroupName", name),
                desired_capacity=int(group["DesiredCapacity"]),
                status=group.get("Status"),
                instance_ids=instance_ids,
                ready_instance_ids=ready_ids,
                min_size=int(group.get("MinSize", 0)),
                max_size=int(group.get("MaxSize", 0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"malformed AutoScaling Group response for {name}: {exc}") from exc

    def describe_activities(
        self,
        name: str,
        activity_ids: Optional[Sequence[str]] = None,
        max_records: Optional[int] = None,
    ) -> List[ActivityRecord]:
        request: Dict[str, Any] = {"AutoScalingGroupName": name}
        if activity_ids:
            request["ActivityIds"] = list(activity_ids)
        if max_records:
            request["MaxRecords"] = max_records

        try:
            response = self.client.describe_scaling_activities(**request)
        except (BotoCoreError, ClientError) as exc:
            raise ProviderError(_client_error_message(exc)) from exc

        return [self._activity_from_response(item) for item in response.get("Activities", [])]

    @staticmethod
    def _activity_from_response(activity: Mapping[str, Any]) -> ActivityRecord:
        try:
            return ActivityRecord(
                activity_id=activity["ActivityId"],
                progress=int(activity.get("Progress", 0)),
                status_code=activity.get("StatusCode", ""),
                end_time=activity.get("EndTime"),
                description=activity.get("Description", ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"malformed scaling activity response: {exc}") from exc

    # ------------------------------------------------------------------
    # Writes

    def set_desired_capacity(self, name: str, desired_capacity: int) -> None:
        try:
            self.client.update_auto_scaling_group(
                AutoScalingGroupName=name,
                DesiredCapacity=desired_capacity,
            )
        except (BotoCoreError, ClientError) as exc:
            raise ProviderError(_client_error_message(exc)) from exc
        logger.info("Updated AutoScaling Group %s desired capacity to %d", name, desired_capacity)

    def terminate_instance(self, instance_id: str, *, decrement: bool = True) -> ActivityRecord:
        try:
            response = self.client.terminate_instance_in_auto_scaling_group(
                InstanceId=instance_id,
                ShouldDecrementDesiredCapacity=decrement,
            )
        except (BotoCoreError, ClientError) as exc:
            raise ProviderError(_client_error_message(exc)) from exc

        activity = response.get("Activity")
        if not activity:
            raise ProviderError(f"terminate response for {instance_id} carried no activity")
        return self._activity_from_response(activity)

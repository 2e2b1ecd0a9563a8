"""
Unit tests for the boto3-backed provider, using botocore's Stubber.
"""

from __future__ import annotations

from datetime import datetime, timezone

import boto3
import pytest
from botocore.stub import Stubber

from asgtarget.core.errors import AmbiguityError, GroupNotFoundError, ProviderError
from asgtarget.core.provider.aws import AwsAsgProvider, create_session


START = datetime(2024, 5, 1, 11, 58, tzinfo=timezone.utc)
END = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _group(name="workers", desired=2, **extra):
    group = {
        "AutoScalingGroupName": name,
        "MinSize": 0,
        "MaxSize": 10,
        "DesiredCapacity": desired,
        "DefaultCooldown": 300,
        "AvailabilityZones": ["us-east-1a"],
        "HealthCheckType": "EC2",
        "CreatedTime": START,
        "Instances": [
            {
                "InstanceId": "i-ready",
                "AvailabilityZone": "us-east-1a",
                "LifecycleState": "InService",
                "HealthStatus": "Healthy",
                "ProtectedFromScaleIn": False,
            },
            {
                "InstanceId": "i-pending",
                "AvailabilityZone": "us-east-1a",
                "LifecycleState": "Pending",
                "HealthStatus": "Healthy",
                "ProtectedFromScaleIn": False,
            },
        ],
    }
    group.update(extra)
    return group


def _activity(activity_id="act-1", progress=100, status_code="Successful", end_time=END):
    activity = {
        "ActivityId": activity_id,
        "AutoScalingGroupName": "workers",
        "Cause": "scaling",
        "StartTime": START,
        "StatusCode": status_code,
        "Progress": progress,
        "Description": "Terminating EC2 instance: i-ready",
    }
    if end_time is not None:
        activity["EndTime"] = end_time
    return activity


@pytest.fixture
def client():
    return boto3.client(
        "autoscaling",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(client):
    with Stubber(client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def aws(client):
    return AwsAsgProvider(client)


def test_describe_group(aws, stubber):
    stubber.add_response(
        "describe_auto_scaling_groups",
        {"AutoScalingGroups": [_group(Status="Delete in progress")]},
        {"AutoScalingGroupNames": ["workers"]},
    )

    snapshot = aws.describe_group("workers")

    assert snapshot.desired_capacity == 2
    assert snapshot.status == "Delete in progress"
    assert snapshot.instance_ids == frozenset({"i-ready", "i-pending"})
    assert snapshot.ready_instance_ids == frozenset({"i-ready"})
    assert snapshot.max_size == 10


def test_describe_group_not_found(aws, stubber):
    stubber.add_response("describe_auto_scaling_groups", {"AutoScalingGroups": []})

    with pytest.raises(GroupNotFoundError):
        aws.describe_group("workers")


def test_describe_group_multiple_matches(aws, stubber):
    stubber.add_response("describe_auto_scaling_groups", {"AutoScalingGroups": [_group(), _group()]})

    with pytest.raises(AmbiguityError) as excinfo:
        aws.describe_group("workers")
    assert excinfo.value.matches == 2


def test_describe_group_client_error(aws, stubber):
    stubber.add_client_error(
        "describe_auto_scaling_groups",
        service_error_code="Throttling",
        service_message="Rate exceeded",
    )

    with pytest.raises(ProviderError) as excinfo:
        aws.describe_group("workers")
    assert str(excinfo.value) == "Throttling: Rate exceeded"


def test_describe_activities(aws, stubber):
    stubber.add_response(
        "describe_scaling_activities",
        {"Activities": [_activity(), _activity("act-0", progress=40, status_code="InProgress", end_time=None)]},
        {"AutoScalingGroupName": "workers"},
    )

    records = aws.describe_activities("workers")

    assert [record.activity_id for record in records] == ["act-1", "act-0"]
    assert records[0].end_time_ns == 1714564800 * 1_000_000_000
    assert records[1].finished is False


def test_describe_activities_with_filter(aws, stubber):
    stubber.add_response(
        "describe_scaling_activities",
        {"Activities": [_activity("act-9")]},
        {"AutoScalingGroupName": "workers", "ActivityIds": ["act-9"], "MaxRecords": 5},
    )

    records = aws.describe_activities("workers", activity_ids=["act-9"], max_records=5)
    assert records[0].activity_id == "act-9"


def test_set_desired_capacity(aws, stubber):
    stubber.add_response(
        "update_auto_scaling_group",
        {},
        {"AutoScalingGroupName": "workers", "DesiredCapacity": 7},
    )

    aws.set_desired_capacity("workers", 7)


def test_set_desired_capacity_rejected(aws, stubber):
    stubber.add_client_error(
        "update_auto_scaling_group",
        service_error_code="ValidationError",
        service_message="New SetDesiredCapacity value 70 is above max value 10",
    )

    with pytest.raises(ProviderError) as excinfo:
        aws.set_desired_capacity("workers", 70)
    assert "above max value 10" in str(excinfo.value)


def test_terminate_instance_decrements(aws, stubber):
    stubber.add_response(
        "terminate_instance_in_auto_scaling_group",
        {"Activity": _activity("act-term", progress=0, status_code="InProgress", end_time=None)},
        {"InstanceId": "i-ready", "ShouldDecrementDesiredCapacity": True},
    )

    record = aws.terminate_instance("i-ready")
    assert record.activity_id == "act-term"
    assert record.status_code == "InProgress"


def test_create_session_uses_region_and_credentials():
    session = create_session(
        {
            "region": "eu-central-1",
            "aws_access_key_id": "AKIA",
            "aws_secret_access_key": "secret",
            "session_token": "token",
        }
    )
    credentials = session.get_credentials()
    assert session.region_name == "eu-central-1"
    assert credentials.access_key == "AKIA"
    assert credentials.token == "token"


def test_create_session_default_region():
    session = create_session({"aws_access_key_id": "AKIA", "aws_secret_access_key": "secret"})
    assert session.region_name == "us-east-1"

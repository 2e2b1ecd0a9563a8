"""
Integration tests for the Ray-hosted target actor and its façade.
"""

from __future__ import annotations

import uuid

import pytest
import ray

from asgtarget.core.actors import ActorConfig, TargetActor
from asgtarget.core.config import TargetSettings
from asgtarget.core.controllers import RayTarget
from fakes import FakeGroupProvider, FakeNodeDrainer


FAST = TargetSettings(retry_interval=0.0, retry_limit=2, drain_deadline=5.0)


def _provider(**groups) -> FakeGroupProvider:
    provider = FakeGroupProvider()
    for name, desired in groups.items():
        provider.add_group(name, desired)
    return provider


@pytest.fixture
def target(ray_runtime):
    instance = RayTarget(
        name=f"test-target-{uuid.uuid4().hex[:8]}",
        provider=_provider(workers=5, batch=2),
        drainer=FakeNodeDrainer(),
        settings=FAST,
    )
    try:
        yield instance
    finally:
        instance.shutdown()


def test_plugin_info(target):
    result = target.plugin_info()
    assert result == {"success": True, "plugin": {"name": "aws-asg", "plugin_type": "target"}}


def test_scale_in_then_status(target):
    result = target.scale(3, {"asg_name": "workers"}, reason="queue drained")
    assert result["success"] is True
    assert result["result"]["outcome"] == "scaled_in"
    assert result["result"]["previous_count"] == 5

    status = target.status({"asg_name": "workers"})
    assert status["success"] is True
    assert status["status"]["count"] == 3
    assert status["status"]["ready"] is True
    assert "last_event" in status["status"]["meta"]


def test_scale_out(target):
    result = target.scale(6, {"asg_name": "batch"})
    assert result["success"] is True
    assert result["result"]["outcome"] == "scaled_out"
    assert target.status({"asg_name": "batch"})["status"]["count"] == 6


def test_noop_is_reported_as_non_success(target):
    result = target.scale(2, {"asg_name": "batch"})
    assert result["success"] is False
    assert result["noop"] is True
    assert result["error"] == "scaling not required, ASG count 2 and Autoscaler desired count 2"


def test_errors_cross_actor_boundary_as_dicts(target):
    missing = target.status({})
    assert missing == {
        "success": False,
        "error": "required config param asg_name not found",
        "error_type": "ConfigError",
    }

    unknown = target.scale(1, {"asg_name": "nope"})
    assert unknown["success"] is False
    assert unknown["error_type"] == "GroupNotFoundError"

    negative = target.scale(-1, {"asg_name": "workers"})
    assert negative["success"] is False
    assert negative["error_type"] == "ValueError"


def test_reconcile_skips_when_group_not_ready(ray_runtime):
    provider = FakeGroupProvider()
    provider.add_group("workers", 4, status="Delete in progress")
    actor = TargetActor.options(max_concurrency=4).remote(
        ActorConfig(name="reconcile-target"), provider=provider, drainer=FakeNodeDrainer(), settings=FAST
    )
    try:
        assert ray.get(actor.set_config.remote({}))["success"] is True
        result = ray.get(actor.reconcile.remote(2, {"asg_name": "workers"}))
        assert result["success"] is True
        assert result["skipped"] is True
        assert result["status"]["ready"] is False
    finally:
        ray.kill(actor, no_restart=True)


def test_reconcile_scales_ready_group(target):
    result = target.reconcile(4, {"asg_name": "workers"})
    assert result["success"] is True
    assert result["result"]["outcome"] == "scaled_in"
    assert result["status"]["count"] == 5


def test_rejected_configuration_raises(ray_runtime):
    with pytest.raises(ValueError) as excinfo:
        RayTarget(
            name=f"bad-target-{uuid.uuid4().hex[:8]}",
            plugin_config={"drain_deadline": "whenever"},
            provider=_provider(workers=1),
            settings=FAST,
        )
    assert "drain_deadline" in str(excinfo.value)

"""
Shared pytest fixtures.
"""

from __future__ import annotations

import logging
import os

import pytest
import ray

from asgtarget.core import AsgTargetPlugin
from asgtarget.core.config import TargetSettings, reset_target_settings
from fakes import FakeGroupProvider, FakeNodeDrainer

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s", force=True)
logging.getLogger("asgtarget").setLevel(logging.DEBUG)


@pytest.fixture(autouse=True)
def clear_settings(monkeypatch):
    monkeypatch.delenv("ASGTARGET_CONFIG", raising=False)
    reset_target_settings()
    yield
    reset_target_settings()


@pytest.fixture
def settings():
    """Fast polling so convergence loops finish instantly."""
    return TargetSettings(region="us-east-1", retry_interval=0.0, retry_limit=3, drain_deadline=30.0)


@pytest.fixture
def provider():
    return FakeGroupProvider()


@pytest.fixture
def drainer():
    return FakeNodeDrainer()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def plugin(provider, drainer, settings, sleeps):
    instance = AsgTargetPlugin(provider=provider, drainer=drainer, settings=settings, sleep=sleeps.append)
    instance.set_config({})
    return instance


@pytest.fixture
def ray_runtime():
    """Spin up a local Ray runtime for tests and mirror worker logs to the driver."""
    try:
        ray.init(
            ignore_reinit_error=True,
            runtime_env={"env_vars": {"PYTHONPATH": os.path.dirname(os.path.abspath(__file__))}},
            logging_level=logging.INFO,
        )
    except PermissionError as exc:
        pytest.skip(f"Ray init requires system permissions not available in this environment: {exc}")
    except Exception as exc:  # pragma: no cover - restricted sandboxes
        if "Operation not permitted" in str(exc):
            pytest.skip(f"Ray init skipped due to restricted environment: {exc}")
        raise
    try:
        yield
    finally:
        ray.shutdown()

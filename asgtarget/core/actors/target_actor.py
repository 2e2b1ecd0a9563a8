"""
Ray actor hosting a single :class:`AsgTargetPlugin`.

The actor owns the configured provider client and drainer so any number of
drivers can share them. Results cross the actor boundary as plain
dictionaries with a ``success`` flag; failures carry the error message and
the error class name.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import ray

from .config import ActorConfig
from asgtarget.core.config import TargetSettings
from asgtarget.core.drain import NodeDrainer
from asgtarget.core.entities.types import ScaleOutcome, ScalingAction
from asgtarget.core.errors import TargetError
from asgtarget.core.provider import GroupProvider
from asgtarget.core.target import AsgTargetPlugin
from asgtarget.core.utils import configure_runtime_logging, demote_noisy_loggers

logger = logging.getLogger(__name__)


def _error_result(exc: Exception) -> dict:
    return {"success": False, "error": str(exc), "error_type": type(exc).__name__}


@ray.remote
class TargetActor:
    """Serves ``scale`` / ``status`` requests for the groups it is asked about."""

    def __init__(
        self,
        config: ActorConfig,
        *,
        provider: Optional[GroupProvider] = None,
        drainer: Optional[NodeDrainer] = None,
        settings: Optional[TargetSettings] = None,
    ):
        configure_runtime_logging()
        demote_noisy_loggers()
        self.config = config
        self.plugin = AsgTargetPlugin(provider=provider, drainer=drainer, settings=settings)
        logger.info("TargetActor[%s] initialised", config.name)

    def set_config(self, plugin_config: Optional[Dict[str, str]] = None) -> dict:
        try:
            self.plugin.set_config(plugin_config)
        except TargetError as exc:
            logger.warning("TargetActor[%s] configuration rejected: %s", self.config.name, exc)
            return _error_result(exc)
        return {"success": True, "plugin": self.plugin.plugin_info().to_dict()}

    def plugin_info(self) -> dict:
        return {"success": True, "plugin": self.plugin.plugin_info().to_dict()}

    def scale(self, count: int, config: Dict[str, str], reason: Optional[str] = None) -> dict:
        try:
            action = ScalingAction(count=count, reason=reason)
            result = self.plugin.scale(action, config)
        except (TargetError, ValueError) as exc:
            logger.error("TargetActor[%s] scale failed: %s", self.config.name, exc)
            return _error_result(exc)

        if result.outcome is ScaleOutcome.NOOP_NEEDED:
            # Reported as non-success so hosts can tell "nothing to do" apart from "done".
            return {"success": False, "noop": True, "error": result.message, "result": result.to_dict()}
        return {"success": True, "result": result.to_dict()}

    def status(self, config: Dict[str, str]) -> dict:
        try:
            verdict = self.plugin.status(config)
        except TargetError as exc:
            logger.error("TargetActor[%s] status failed: %s", self.config.name, exc)
            return _error_result(exc)
        return {"success": True, "status": verdict.to_dict()}

    def reconcile(self, count: int, config: Dict[str, str], reason: Optional[str] = None) -> dict:
        """Check readiness and scale only if the group can take a new action."""
        status = self.status(config)
        if not status["success"]:
            return status
        if not status["status"]["ready"]:
            logger.info("TargetActor[%s] group not ready, skipping scale to %d", self.config.name, count)
            return {"success": True, "skipped": True, "status": status["status"]}
        outcome: Dict[str, Any] = self.scale(count, config, reason=reason)
        outcome["status"] = status["status"]
        return outcome

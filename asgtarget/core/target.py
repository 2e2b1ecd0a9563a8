"""
AWS Auto Scaling Group target plugin.

The plugin is configured once with :meth:`AsgTargetPlugin.set_config` and
then serves any number of ``scale`` / ``status`` calls. It keeps no state
between calls beyond the provider client, the drainer and the settings, all
of which are read-only after configuration.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Mapping, Optional

from asgtarget.config.keys import (
    CONFIG_KEY_ASG_NAME,
    CONFIG_KEY_DRAINER,
    CONFIG_KEY_REGION,
    PLUGIN_NAME,
    PluginType,
    redact_config,
)
from asgtarget.core.config import TargetSettings, get_target_settings
from asgtarget.core.drain import NodeDrainer, load_drainer
from asgtarget.core.entities.types import (
    Direction,
    PluginInfo,
    ScaleOutcome,
    ScaleResult,
    ScalingAction,
    StatusVerdict,
)
from asgtarget.core.errors import ConfigError, TargetError
from asgtarget.core.executors import ScaleInExecutor, ScaleOutExecutor, SleepFn
from asgtarget.core.provider import GroupProvider, GroupStateReader
from asgtarget.core.provider.base import DESCRIBE_GROUP_CONTEXT
from asgtarget.core.scaling import scale_direction
from asgtarget.core.status import StatusReconciler

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[Mapping[str, str]], GroupProvider]

SCALING_ACTION_CONTEXT = "failed to perform scaling action"


def _default_provider_factory(config: Mapping[str, str]) -> GroupProvider:
    from asgtarget.core.provider.aws import AwsAsgProvider

    return AwsAsgProvider.from_config(config)


class AsgTargetPlugin:
    """
    Scales an AWS Auto Scaling Group towards a strategy's desired count.

    Typical usage::

        plugin = AsgTargetPlugin(drainer=my_drainer)
        plugin.set_config({"region": "eu-west-1"})
        plugin.scale(ScalingAction(count=4), {"asg_name": "workers"})
        verdict = plugin.status({"asg_name": "workers"})

    ``provider``, ``drainer`` and ``settings`` may be injected directly
    (tests, embedding hosts); otherwise they are built from the mapping given
    to :meth:`set_config`.
    """

    def __init__(
        self,
        *,
        provider: Optional[GroupProvider] = None,
        drainer: Optional[NodeDrainer] = None,
        settings: Optional[TargetSettings] = None,
        provider_factory: ProviderFactory = _default_provider_factory,
        sleep: SleepFn = time.sleep,
    ):
        self.config: Dict[str, str] = {}
        self.provider = provider
        self.drainer = drainer
        self.settings = settings
        self._injected_provider = provider
        self._injected_drainer = drainer
        self._injected_settings = settings
        self._provider_factory = provider_factory
        self._sleep = sleep
        self._configured = False

    # ------------------------------------------------------------------
    # Plugin lifecycle

    def set_config(self, config: Optional[Mapping[str, str]] = None) -> None:
        """Build the provider client, drainer and executors from ``config``."""
        self.config = dict(config or {})
        base_settings = self._injected_settings or get_target_settings()
        self.settings = base_settings.merged(self.config)

        self.provider = self._injected_provider
        if self.provider is None:
            client_config = {CONFIG_KEY_REGION: self.settings.region, **self.config}
            self.provider = self._provider_factory(client_config)
        self.drainer = self._injected_drainer
        if self.drainer is None and self.config.get(CONFIG_KEY_DRAINER):
            self.drainer = load_drainer(self.config[CONFIG_KEY_DRAINER], self.config)

        self.reader = GroupStateReader(self.provider)
        self.scale_out_executor = ScaleOutExecutor(self.provider, self.settings, sleep=self._sleep)
        self.scale_in_executor = ScaleInExecutor(self.provider, self.drainer, self.settings, sleep=self._sleep)
        self.status_reconciler = StatusReconciler(self.reader)
        self._configured = True
        logger.info("AsgTargetPlugin configured: %s", redact_config(self.config))

    def plugin_info(self) -> PluginInfo:
        return PluginInfo(name=PLUGIN_NAME, plugin_type=PluginType.TARGET)

    def _ensure_configured(self) -> None:
        if not self._configured:
            raise ConfigError("plugin is not configured; call set_config first")

    # ------------------------------------------------------------------
    # Target operations

    def scale(self, action: ScalingAction, config: Mapping[str, str]) -> ScaleResult:
        """
        Move the group towards ``action.count``.

        Returns a :class:`ScaleResult`; when the group already matches the
        desired count the outcome is ``NOOP_NEEDED`` and nothing is changed.
        """
        # We cannot scale a group without knowing its name.
        name = config.get(CONFIG_KEY_ASG_NAME)
        if not name:
            raise ConfigError.missing(CONFIG_KEY_ASG_NAME)
        self._ensure_configured()

        call_config = {**self.config, **config}
        settings = self.settings.merged(config)

        # A single describe serves both the direction decision and the
        # executor, so the action always matches the state it was decided on.
        try:
            snapshot = self.reader.describe_group(name)
        except TargetError as exc:
            raise exc.add_context(DESCRIBE_GROUP_CONTEXT)

        decision = scale_direction(snapshot.desired_capacity, action.count)

        if decision.direction is Direction.NONE:
            message = (
                f"scaling not required, ASG count {snapshot.desired_capacity} "
                f"and Autoscaler desired count {action.count}"
            )
            logger.info("Group[%s] %s", name, message)
            return ScaleResult(
                outcome=ScaleOutcome.NOOP_NEEDED,
                message=message,
                previous_count=snapshot.desired_capacity,
                requested_count=action.count,
            )

        try:
            if decision.direction is Direction.IN:
                removed = self.scale_in_executor.scale_in(snapshot, decision.amount, call_config, settings)
                outcome = ScaleOutcome.SCALED_IN
                message = f"scaled in {name} by {len(removed)} instance(s)"
            else:
                self.scale_out_executor.scale_out(snapshot, decision.amount, settings)
                outcome = ScaleOutcome.SCALED_OUT
                message = f"scaled out {name} to {decision.amount} instance(s)"
        except TargetError as exc:
            raise exc.add_context(SCALING_ACTION_CONTEXT)

        return ScaleResult(
            outcome=outcome,
            message=message,
            previous_count=snapshot.desired_capacity,
            requested_count=action.count,
        )

    def status(self, config: Mapping[str, str]) -> StatusVerdict:
        """Report whether the group is ready for another scaling action."""
        self._ensure_configured()
        return self.status_reconciler.status(config)

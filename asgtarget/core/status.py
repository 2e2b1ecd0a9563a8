"""
Readiness reconciliation for a group.
"""

from __future__ import annotations

import logging
from typing import Mapping

from asgtarget.config.keys import CONFIG_KEY_ASG_NAME
from asgtarget.core.entities.types import GroupState, StatusVerdict
from asgtarget.core.errors import ConfigError
from asgtarget.core.provider import GroupStateReader

logger = logging.getLogger(__name__)


def reduce_status(state: GroupState) -> StatusVerdict:
    """
    Fold a snapshot and its latest activity into a verdict.

    The group is ready when the provider reports no transition status, or
    when the most recent activity has reached 100%. Only a finished latest
    activity contributes a last-event timestamp.
    """
    snapshot = state.snapshot
    ready = not snapshot.transitioning
    last_event = None

    latest = state.latest_activity
    if latest is not None:
        ready = ready or latest.progress == 100
        last_event = latest.end_time_ns

    return StatusVerdict(ready=ready, count=snapshot.desired_capacity, last_event_timestamp=last_event)


class StatusReconciler:
    def __init__(self, reader: GroupStateReader):
        self.reader = reader

    def status(self, config: Mapping[str, str]) -> StatusVerdict:
        name = config.get(CONFIG_KEY_ASG_NAME)
        if not name:
            raise ConfigError.missing(CONFIG_KEY_ASG_NAME)

        verdict = reduce_status(self.reader.read(name))
        logger.debug(
            "Group[%s] status: ready=%s count=%d last_event=%s",
            name,
            verdict.ready,
            verdict.count,
            verdict.last_event_timestamp,
        )
        return verdict

"""
Node drain collaborator contract.

The target never drains nodes itself. It hands a :class:`DrainRequest` to a
:class:`NodeDrainer`, which picks the nodes, moves workloads off them within
the deadline and returns the provider instance ids that are safe to
terminate.
"""

from __future__ import annotations

import importlib
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Mapping, Optional, Sequence, Union

from asgtarget.config.keys import CONFIG_KEY_DRAINER
from asgtarget.core.errors import ConfigError

logger = logging.getLogger(__name__)

DrainerFactory = Callable[[Mapping[str, str]], "NodeDrainer"]


@dataclass(frozen=True)
class DrainRequest:
    """
    Attributes:
        group: Name of the group being shrunk.
        eligible_instance_ids: Instances currently in the group; only these may be selected.
        count: Number of nodes to remove.
        deadline: Seconds the drain may take before it must give up.
        node_class: Operator-defined class label, passed through untouched.
    """

    group: str
    eligible_instance_ids: FrozenSet[str]
    count: int
    deadline: float
    node_class: Optional[str] = None


class NodeDrainer(ABC):
    """Selects and drains nodes ahead of instance termination."""

    @abstractmethod
    def select_and_drain(self, request: DrainRequest) -> Sequence[str]:
        """
        Drain ``request.count`` nodes and return their provider instance ids.

        Must raise (any exception) if selection or draining cannot complete.
        """

    def post_scale_in(self, instance_ids: Sequence[str]) -> None:
        """Hook run with the instances that were actually terminated."""
        return None


def _coerce_drainer(obj: object, config: Mapping[str, str]) -> NodeDrainer:
    if isinstance(obj, NodeDrainer):
        return obj
    if inspect.isclass(obj) and issubclass(obj, NodeDrainer):  # type: ignore[arg-type]
        params = inspect.signature(obj).parameters
        return obj(config) if params else obj()  # type: ignore[call-arg]
    if callable(obj):
        instance = obj(config)
        if isinstance(instance, NodeDrainer):
            return instance
        raise ConfigError("drainer factory must return a NodeDrainer instance", key=CONFIG_KEY_DRAINER)
    raise ConfigError(f"unsupported drainer type {type(obj).__name__}", key=CONFIG_KEY_DRAINER)


def load_drainer(source: Union[str, NodeDrainer, DrainerFactory], config: Mapping[str, str]) -> NodeDrainer:
    """
    Resolve a drainer from an instance, factory or ``"module:attr"`` import path.

    Factories and classes taking arguments receive the configuration mapping.
    """
    if isinstance(source, str):
        module_name, sep, attr = source.partition(":")
        if not sep:
            raise ConfigError(f"Invalid drainer import path '{source}'. Expected format 'module:attr'.")
        try:
            module = importlib.import_module(module_name)
            obj = getattr(module, attr)
        except (ImportError, AttributeError) as exc:
            raise ConfigError(f"cannot load drainer '{source}': {exc}") from exc
        logger.debug("Loaded drainer from %s", source)
        return _coerce_drainer(obj, config)
    return _coerce_drainer(source, config)


def validate_drained(request: DrainRequest, instance_ids: Sequence[str]) -> List[str]:
    """Return the drained ids as a list or describe why they cannot be used."""
    drained = list(instance_ids)
    if len(drained) != len(set(drained)):
        raise ValueError(f"drainer returned duplicate instance ids: {drained}")
    if len(drained) != request.count:
        raise ValueError(f"drainer returned {len(drained)} instances, {request.count} required")
    unknown = sorted(set(drained) - request.eligible_instance_ids)
    if unknown:
        raise ValueError(f"drainer returned instances not in group {request.group}: {', '.join(unknown)}")
    return drained

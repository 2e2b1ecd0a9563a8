"""
AWS Auto Scaling Group target for cluster autoscalers.

``AsgTargetPlugin`` runs in-process; ``RayTarget`` hosts it in a Ray actor.
Both are resolved on first attribute access: ``import asgtarget`` alone
imports neither Ray nor boto3, and boto3 is only loaded once a plugin builds
its AWS client in ``set_config``.
"""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version

__all__ = [
    "AsgTargetPlugin",
    "RayTarget",
    "ScalingAction",
    "StatusVerdict",
    "__version__",
]

try:
    __version__ = version("asgtarget-core")
except PackageNotFoundError:
    __version__ = "0.0.0"

_EXPORTS = {
    "AsgTargetPlugin": "asgtarget.core.target",
    "RayTarget": "asgtarget.core.controllers",
    "ScalingAction": "asgtarget.core.entities",
    "StatusVerdict": "asgtarget.core.entities",
}


def __getattr__(name: str):
    try:
        module_name = _EXPORTS[name]
    except KeyError:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}") from None
    value = getattr(import_module(module_name), name)
    globals()[name] = value
    return value

"""
Client-facing RayTarget façade.

The façade proxies all operations to the underlying target actor while
exposing a synchronous API to library consumers.
"""

from __future__ import annotations

from typing import Dict, Optional

import ray

from asgtarget.core.actors.config import ActorConfig
from asgtarget.core.actors.target_actor import TargetActor
from asgtarget.core.config import TargetSettings
from asgtarget.core.drain import NodeDrainer
from asgtarget.core.provider import GroupProvider


class RayTarget:
    """Thin wrapper around the TargetActor."""

    def __init__(
        self,
        name: str = "asgtarget",
        *,
        plugin_config: Optional[Dict[str, str]] = None,
        provider: Optional[GroupProvider] = None,
        drainer: Optional[NodeDrainer] = None,
        settings: Optional[TargetSettings] = None,
        namespace: str | None = None,
        detached: bool = False,
        max_concurrency: int = 8,
        max_restarts: int = -1,
    ):
        """
        Create and configure a new target actor.

        Args:
            name: Logical name for the target actor.
            plugin_config: Mapping handed to ``set_config`` (region,
                credentials, drain deadline, drainer import path, ...).
            provider: Optional provider instance; must be picklable. When
                omitted the actor builds a boto3 client from ``plugin_config``.
            drainer: Optional drainer instance; must be picklable.
            settings: Optional settings overriding the YAML defaults.
            namespace: Ray namespace to place the actor in.
            detached: Whether to create the actor as a detached, named actor
                that survives driver exits.
            max_concurrency: Concurrent calls the actor serves, so requests
                for different groups do not queue behind each other.
            max_restarts: Passed to Ray for detached actors (``-1`` means
                infinite restarts).
        """
        self.name = name
        self._namespace = namespace
        actor_config = ActorConfig(name=name, max_concurrency=max_concurrency, max_restarts=max_restarts)
        actor_options = actor_config.ray_options(namespace=namespace, detached=detached)
        self._actor = TargetActor.options(**actor_options).remote(
            actor_config,
            provider=provider,
            drainer=drainer,
            settings=settings,
        )
        self._owns_actor = True
        result = ray.get(self._actor.set_config.remote(plugin_config or {}))
        if not result["success"]:
            self.shutdown()
            raise ValueError(f"Target configuration rejected: {result['error']}")

    @classmethod
    def attach(cls, name: str = "asgtarget", *, namespace: str | None = None) -> "RayTarget":
        """
        Attach to an existing (typically detached) target actor.
        """
        handle = ray.get_actor(name, namespace=namespace)
        instance = cls.__new__(cls)
        instance.name = name
        instance._namespace = namespace
        instance._actor = handle
        instance._owns_actor = False
        return instance

    def _ensure_actor(self) -> ray.actor.ActorHandle:
        if self._actor is None:
            raise RuntimeError("RayTarget has been shut down")
        return self._actor

    def plugin_info(self) -> dict:
        return ray.get(self._ensure_actor().plugin_info.remote())

    def scale(self, count: int, config: Dict[str, str], *, reason: str | None = None) -> dict:
        return ray.get(self._ensure_actor().scale.remote(count, config, reason=reason))

    def status(self, config: Dict[str, str]) -> dict:
        return ray.get(self._ensure_actor().status.remote(config))

    def reconcile(self, count: int, config: Dict[str, str], *, reason: str | None = None) -> dict:
        return ray.get(self._ensure_actor().reconcile.remote(count, config, reason=reason))

    def shutdown(self) -> None:
        """Kill the actor if this façade created it; attached handles are just dropped."""
        if self._actor is not None and self._owns_actor:
            ray.kill(self._actor, no_restart=True)
        self._actor = None

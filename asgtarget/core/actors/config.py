"""
Shared configuration dataclasses for target actors.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ActorConfig:
    """
    Naming and Ray options for an actor hosting a target plugin.

    ``max_restarts`` only applies to detached actors.
    """

    name: str
    max_concurrency: int = 8
    max_restarts: int = 0

    def ray_options(self, *, namespace: str | None = None, detached: bool = False) -> dict:
        options: dict = {"max_concurrency": self.max_concurrency}
        if namespace is not None:
            options["namespace"] = namespace
        if detached:
            options.update({"name": self.name, "lifetime": "detached", "max_restarts": self.max_restarts})
        return options

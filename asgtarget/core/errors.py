"""
Error taxonomy for the ASG target.

Every failure raised by the target derives from :class:`TargetError`. Callers
can prepend step context with :meth:`TargetError.add_context` while keeping the
concrete class intact, so ``except DrainError`` still works after the
orchestrator has wrapped the message.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence


class TargetError(Exception):
    """Base class for all ASG target failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self._context: List[str] = []

    def add_context(self, context: str) -> "TargetError":
        """Prepend a human-readable step description and return ``self``."""
        self._context.insert(0, context)
        return self

    @property
    def context(self) -> Sequence[str]:
        return tuple(self._context)

    def __str__(self) -> str:
        return ": ".join([*self._context, self.message])


class ConfigError(TargetError):
    """A required configuration value is missing or malformed."""

    def __init__(self, message: str, *, key: Optional[str] = None):
        super().__init__(message)
        self.key = key

    @classmethod
    def missing(cls, key: str) -> "ConfigError":
        return cls(f"required config param {key} not found", key=key)


class ProviderError(TargetError):
    """The cloud provider rejected a call or returned malformed data."""


class AmbiguityError(ProviderError):
    """An identifier did not resolve to exactly one group."""

    def __init__(self, message: str, *, identifier: str, matches: int):
        super().__init__(message)
        self.identifier = identifier
        self.matches = matches


class GroupNotFoundError(AmbiguityError):
    """No group matched the identifier."""

    def __init__(self, identifier: str):
        super().__init__(
            f"AutoScaling Group {identifier} not found",
            identifier=identifier,
            matches=0,
        )


class ScalingTimeoutError(TargetError, TimeoutError):
    """Convergence or drain did not complete within its deadline."""


class DrainError(TargetError):
    """Node selection or draining failed before any capacity change."""


class TerminationError(ProviderError):
    """
    One or more instance terminations failed during scale-in.

    ``terminated`` lists the instances that were removed (and stay removed);
    ``failures`` maps each failed instance id to its underlying error.
    ``pending`` holds instances whose termination was started but never
    confirmed. ``errors`` carries the later step failures, such as the
    activity wait or the post-scale-in hook.
    """

    def __init__(
        self,
        terminated: Sequence[str],
        failures: Dict[str, Exception],
        *,
        pending: Sequence[str] = (),
        errors: Sequence[Exception] = (),
    ):
        self.terminated = list(terminated)
        self.failures = dict(failures)
        self.pending = list(pending)
        self.errors = list(errors)
        total = len(self.failures) + len(self.terminated) + len(self.pending)
        details = "; ".join(f"{instance_id}: {exc}" for instance_id, exc in sorted(self.failures.items()))
        message = f"failed to terminate {len(self.failures)} of {total} instances ({details})"
        for error in self.errors:
            message += f"; {error}"
        super().__init__(message)


__all__ = [
    "TargetError",
    "ConfigError",
    "ProviderError",
    "AmbiguityError",
    "GroupNotFoundError",
    "ScalingTimeoutError",
    "DrainError",
    "TerminationError",
]

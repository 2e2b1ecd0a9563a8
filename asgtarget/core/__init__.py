"""
Core package bootstrap for the ASG target runtime.

Re-exports the plugin class so callers can simply do::

    from asgtarget.core import AsgTargetPlugin
"""

from __future__ import annotations

from asgtarget.core.target import AsgTargetPlugin

__all__ = ["AsgTargetPlugin"]

"""
Cloud provider capability and its AWS implementation.

``AwsAsgProvider`` is imported lazily so fakes can be used without boto3.
"""

from __future__ import annotations

from .base import GroupProvider, GroupStateReader  # noqa: F401

__all__ = [
    "AwsAsgProvider",
    "GroupProvider",
    "GroupStateReader",
]


def __getattr__(name: str):
    if name == "AwsAsgProvider":
        from .aws import AwsAsgProvider

        return AwsAsgProvider
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

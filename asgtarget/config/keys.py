"""
Configuration keys understood by the AWS ASG target and their defaults.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


PLUGIN_NAME = "aws-asg"


class PluginType(str, Enum):
    """
    Plugin categories known to the autoscaler host.

    Using ``str`` as a mixin keeps the values JSON-serialisable.
    """

    TARGET = "target"
    STRATEGY = "strategy"
    APM = "apm"


# Keys read from the string->string mapping supplied by the operator.
CONFIG_KEY_REGION = "region"
CONFIG_KEY_ACCESS_ID = "aws_access_key_id"
CONFIG_KEY_SECRET_KEY = "aws_secret_access_key"
CONFIG_KEY_SESSION_TOKEN = "session_token"
CONFIG_KEY_ASG_NAME = "asg_name"
CONFIG_KEY_CLASS = "class"
CONFIG_KEY_DRAIN_DEADLINE = "drain_deadline"
CONFIG_KEY_RETRY_INTERVAL = "retry_interval"
CONFIG_KEY_RETRY_LIMIT = "retry_limit"
CONFIG_KEY_DRAINER = "drainer"

CONFIG_VALUE_REGION_DEFAULT = "us-east-1"

# Status meta key carrying the end time (ns since epoch) of the latest activity.
META_KEY_LAST_EVENT = "last_event"

CREDENTIAL_KEYS: Tuple[str, ...] = (
    CONFIG_KEY_ACCESS_ID,
    CONFIG_KEY_SECRET_KEY,
    CONFIG_KEY_SESSION_TOKEN,
)

# boto3 keyword names for the credential keys above.
BOTO3_CREDENTIAL_ARGS: Dict[str, str] = {
    CONFIG_KEY_ACCESS_ID: "aws_access_key_id",
    CONFIG_KEY_SECRET_KEY: "aws_secret_access_key",
    CONFIG_KEY_SESSION_TOKEN: "aws_session_token",
}


def redact_config(config: Dict[str, str]) -> Dict[str, str]:
    """Return a copy of ``config`` safe to log (credentials masked)."""
    redacted = dict(config)
    for key in CREDENTIAL_KEYS:
        if redacted.get(key):
            redacted[key] = "***"
    return redacted

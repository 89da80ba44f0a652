"""Environment-driven settings of the update controller."""

from __future__ import annotations

import os
import re
import sys
from typing import Mapping

__all__ = [
    "ACTION_INTERVAL_SECONDS",
    "MAX_CONCURRENT_UPDATE_ENV_VAR",
    "UNLIMITED",
    "ControllerError",
    "read_env_var",
    "max_concurrent_update",
]

# Seconds the controller waits between rounds of action.
ACTION_INTERVAL_SECONDS = 2

MAX_CONCURRENT_UPDATE_ENV_VAR = "MAX_CONCURRENT_UPDATE"

# The value used when updates are not limited in number.
UNLIMITED = sys.maxsize

_UNSIGNED = re.compile(r"\+?[0-9]+")


class ControllerError(Exception):
    """Raised when the controller cannot read or interpret its settings."""


def read_env_var(name: str, environ: Mapping[str, str] | None = None) -> str:
    """Return an environment variable, raising ControllerError if it is unset."""
    env = os.environ if environ is None else environ
    try:
        return env[name]
    except KeyError:
        raise ControllerError(
            f"Unable to get environment variable '{name}' due to : 'environment variable not found'"
        ) from None


def max_concurrent_update(environ: Mapping[str, str] | None = None) -> int:
    """How many nodes may update at once; ``unlimited`` maps to UNLIMITED."""
    value = read_env_var(MAX_CONCURRENT_UPDATE_ENV_VAR, environ).lower()
    if value == "unlimited":
        return UNLIMITED
    if not _UNSIGNED.fullmatch(value):
        raise ControllerError(
            f"Unable to parse environment variable '{MAX_CONCURRENT_UPDATE_ENV_VAR}': "
            f"'invalid digit found in string'"
        )
    number = int(value)
    if number > UNLIMITED:
        raise ControllerError(
            f"Unable to parse environment variable '{MAX_CONCURRENT_UPDATE_ENV_VAR}': "
            f"'number too large to fit in target type'"
        )
    return number
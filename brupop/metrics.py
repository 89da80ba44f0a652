"""Gauges of host versions and states, rendered in the Prometheus text format."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

__all__ = [
    "CONTENT_TYPE",
    "HOSTS_VERSION_METRIC",
    "HOSTS_STATE_METRIC",
    "HostsData",
    "ControllerMetrics",
]

CONTENT_TYPE = "text/plain; version=0.0.4"

HOSTS_VERSION_METRIC = "brupop_hosts_version"
HOSTS_STATE_METRIC = "brupop_hosts_state"
HOST_VERSION_KEY = "bottlerocket_version"
HOST_STATE_KEY = "state"

_DESCRIPTIONS = {
    HOSTS_VERSION_METRIC: "Brupop host's bottlerocket version",
    HOSTS_STATE_METRIC: "Brupop host's state",
}


@dataclass
class HostsData:
    """Host counts per Bottlerocket version and per update state."""

    version_counts: dict[str, int] = field(default_factory=dict)
    state_counts: dict[str, int] = field(default_factory=dict)


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


class ControllerMetrics:
    """Holds the latest host data shared with metric readers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data = HostsData()

    def emit_metrics(self, data: HostsData) -> None:
        """Replace the observed data; skipped if a reader holds it right now."""
        if self._lock.acquire(blocking=False):
            try:
                self._data = data
            finally:
                self._lock.release()

    def samples(self) -> list[tuple[str, dict[str, str], int]]:
        """Current gauge samples as (metric, labels, value), sorted."""
        with self._lock:
            versions = dict(self._data.version_counts)
            states = dict(self._data.state_counts)
        result = [
            (HOSTS_VERSION_METRIC, {HOST_VERSION_KEY: version}, count)
            for version, count in sorted(versions.items())
        ]
        result += [
            (HOSTS_STATE_METRIC, {HOST_STATE_KEY: state}, count)
            for state, count in sorted(states.items())
        ]
        return result

    def render(self) -> str:
        """The samples in the Prometheus text exposition format."""
        by_metric: dict[str, list[str]] = {}
        for name, labels, value in self.samples():
            label_text = ",".join(
                f'{key}="{_escape_label(val)}"' for key, val in labels.items()
            )
            by_metric.setdefault(name, []).append(f"{name}{{{label_text}}} {value}")
        lines: list[str] = []
        for name in sorted(by_metric):
            lines.append(f"# HELP {name} {_escape_help(_DESCRIPTIONS[name])}")
            lines.append(f"# TYPE {name} gauge")
            lines.extend(by_metric[name])
        return "".join(line + "\n" for line in lines)
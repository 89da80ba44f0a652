"""Watching a cluster until every node reaches its target Bottlerocket version."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from time import monotonic
from typing import Any, Mapping, Protocol, Sequence

__all__ = [
    "MONITOR_SLEEP_SECONDS",
    "ESTIMATED_UPDATE_TIME_EACH_NODE",
    "EXTRA_TIME",
    "NUM_RETRIES",
    "IDLE_STATE",
    "MonitorError",
    "ShadowStatus",
    "Shadow",
    "BrupopClient",
    "BrupopMonitor",
    "estimate_expire_time",
    "is_pod_running",
]

MONITOR_SLEEP_SECONDS = 30
ESTIMATED_UPDATE_TIME_EACH_NODE = 300
EXTRA_TIME = 300
NUM_RETRIES = 5

IDLE_STATE = "Idle"


class MonitorError(Exception):
    """Raised when monitoring cannot continue or the update does not finish."""


@dataclass(frozen=True)
class ShadowStatus:
    """The reported versions and update state of one node."""

    current_version: str
    target_version: str
    current_state: str


@dataclass(frozen=True)
class Shadow:
    """A node's update shadow: its name and, once initialised, its status."""

    name: str | None = None
    status: ShadowStatus | None = None


class BrupopClient(Protocol):
    """Fetches the operator's shadows and pods from the cluster."""

    async def fetch_shadows(self) -> Sequence[Shadow]: ...

    async def fetch_brupop_pods(self) -> Sequence[Mapping[str, Any]]: ...


def estimate_expire_time(number_of_brs: int) -> int:
    """Seconds allowed for the whole update: 300 per node plus 300 more."""
    return number_of_brs * ESTIMATED_UPDATE_TIME_EACH_NODE + EXTRA_TIME


def is_pod_running(pod: Mapping[str, Any]) -> bool:
    """Whether the pod's status phase is ``Running``."""
    status = pod.get("status") or {}
    return status.get("phase") == "Running"


class BrupopMonitor:
    """Checks operator health and node update progress."""

    def __init__(self, client: BrupopClient) -> None:
        self.client = client

    def check_pods_health(self, pods: Sequence[Mapping[str, Any]]) -> bool:
        """Whether there are operator pods and all of them are running."""
        return bool(pods) and all(is_pod_running(pod) for pod in pods)

    def check_shadows_health(self, shadows: Sequence[Shadow]) -> bool:
        """Whether there are shadows and all of them have a status."""
        return bool(shadows) and all(shadow.status is not None for shadow in shadows)

    def confirm_update_success(self, shadows: Sequence[Shadow]) -> bool:
        """Whether every node is idle at its target version; reports each node."""
        update_success = True
        for shadow in shadows:
            status = shadow.status
            if status is None:
                raise MonitorError(
                    "Unable to get Bottlerocket node 'status' because of missing 'status' value"
                )
            if (
                status.current_version != status.target_version
                or status.current_state != IDLE_STATE
            ):
                update_success = False
            if shadow.name is None:
                raise MonitorError("Unable to get Bottlerocket name")
            print(
                f"brs: {shadow.name!r}      current_version: {status.current_version!r}"
                f"       current_state: {status.current_state}"
            )
        return update_success

    async def run_monitor(self) -> None:
        """Poll until all nodes are updated; raise MonitorError on failure or timeout."""
        start_time = monotonic()
        retry_count = 0
        while True:
            shadows = await self.client.fetch_shadows()
            pods = await self.client.fetch_brupop_pods()

            if not self.check_pods_health(pods) or not self.check_shadows_health(shadows):
                if retry_count < NUM_RETRIES:
                    retry_count += 1
                    await asyncio.sleep(MONITOR_SLEEP_SECONDS)
                    continue
                raise MonitorError(
                    "Failed to run brupop monitor because Brupop pods (agent, apisever, "
                    "controller or BottlerocketShadows) aren't on healthy status, "
                    "please check brupop pods' logs"
                )

            if self.confirm_update_success(shadows):
                print("[Complete]: All nodes have been successfully updated to latest version!")
                return

            if monotonic() - start_time >= estimate_expire_time(len(shadows)):
                raise MonitorError(
                    "Failed to run brupop monitor because Monitor exceeds the estimated "
                    "update time limit, please check brupop pods' logs"
                )

            print("[Not ready] keep monitoring!")
            await asyncio.sleep(MONITOR_SLEEP_SECONDS)
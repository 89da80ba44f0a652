"""Retry timing for nodes that previously failed an update."""

from __future__ import annotations

from datetime import datetime, timezone

__all__ = [
    "RETRY_MAX_DELAY_IN_MINUTES",
    "exponential_backoff_time_with_upper_limit",
    "node_allowed_to_update",
]

RETRY_MAX_DELAY_IN_MINUTES = 24 * 60


def exponential_backoff_time_with_upper_limit(time_gap: int, power: int, upper_limit: int) -> bool:
    """Whether ``time_gap`` minutes exceed ``2 ** power`` or the upper limit."""
    if time_gap > upper_limit:
        return True
    return time_gap > 2**power


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def node_allowed_to_update(
    failure_time: datetime | None,
    crash_count: int,
    now: datetime | None = None,
) -> bool:
    """Whether an idle node may enter an update workflow.

    A node that never failed may always update; one that failed must wait
    until its exponential retry delay (capped at one day) has passed.
    """
    if failure_time is None:
        return True
    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    elapsed = now - _as_utc(failure_time)
    # Whole minutes, truncated toward zero.
    time_gap = int(elapsed.total_seconds() / 60)
    return exponential_backoff_time_with_upper_limit(
        time_gap, crash_count, RETRY_MAX_DELAY_IN_MINUTES
    )
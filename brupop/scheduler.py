"""Maintenance-window scheduling driven by cron expressions."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Mapping

from .cron import CronError, CronSchedule, parse_schedule

__all__ = [
    "SchedulerError",
    "ScheduleType",
    "LegacyUpdateWindow",
    "CronScheduler",
    "determine_schedule_type",
    "duration_between_next_two_points",
    "cron_schedule_from_env",
]

logger = logging.getLogger(__name__)

SCHEDULER_CRON_EXPRESSION_ENV_VAR = "SCHEDULER_CRON_EXPRESSION"
UPDATE_WINDOW_START_ENV_VAR = "UPDATE_WINDOW_START"
UPDATE_WINDOW_STOP_ENV_VAR = "UPDATE_WINDOW_STOP"
SCHEDULER_DEFAULT = "* * * * * * *"

# HH:MM:SS
VALID_UPDATE_TIME_WINDOW = re.compile(r"(2[0-3]|[01]?[0-9]):([0-5]?[0-9]):([0-5]?[0-9])")


class SchedulerError(Exception):
    """Raised when a schedule cannot be built or evaluated."""


class ScheduleType(Enum):
    """Whether a schedule describes a time window or a single trigger time."""

    WINDOWED = "windowed"
    ONESHOT = "oneshot"


def _env(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


@dataclass(frozen=True)
class LegacyUpdateWindow:
    """An update window given as start and end times of day."""

    start_time: str
    end_time: str

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> LegacyUpdateWindow | None:
        env = _env(environ)
        start = env.get(UPDATE_WINDOW_START_ENV_VAR)
        stop = env.get(UPDATE_WINDOW_STOP_ENV_VAR)
        if start is None and stop is None:
            return None
        if start is None or stop is None:
            raise SchedulerError(
                "Failed to find update time window due to 'missing update time start variable "
                "or update time start variable, please provide both of them.'"
            )
        return cls(start, stop)

    def cron_expression(self) -> str:
        """Convert the window to a cron expression; overnight windows wrap past midnight."""
        start = VALID_UPDATE_TIME_WINDOW.fullmatch(self.start_time)
        stop = VALID_UPDATE_TIME_WINDOW.fullmatch(self.end_time)
        if start is None or stop is None:
            raise SchedulerError(
                "Failed to generate update window settings due to invalid input, "
                "please follow HH:MM:SS format."
            )
        start_hour = int(start.group(1))
        stop_hour = int(stop.group(1))
        if start_hour <= stop_hour:
            return f"* * {start_hour}-{stop_hour} * * * *"
        return f"* * {start_hour}-23,0-{stop_hour} * * * *"


def duration_between_next_two_points(schedule: CronSchedule, start: datetime) -> timedelta:
    """Time between the next two scheduled points after ``start``."""
    upcoming = schedule.after(start)
    try:
        first = next(upcoming)
        second = next(upcoming)
    except StopIteration:
        raise SchedulerError("Unable to get cron expression schedule scheduled datetime") from None
    return second - first


def determine_schedule_type(schedule: CronSchedule, now: datetime | None = None) -> ScheduleType:
    """Schedules that fire every second are windows; anything else is a trigger time."""
    now = now or datetime.now(timezone.utc)
    if duration_between_next_two_points(schedule, now) == timedelta(seconds=1):
        return ScheduleType.WINDOWED
    return ScheduleType.ONESHOT


def cron_schedule_from_env(environ: Mapping[str, str] | None = None) -> str | None:
    """The cron expression configured in the environment, if any."""
    return _env(environ).get(SCHEDULER_CRON_EXPRESSION_ENV_VAR)


@dataclass(frozen=True)
class CronScheduler:
    """Decides when the controller may start and must stop updating nodes."""

    schedule: CronSchedule
    schedule_type: ScheduleType

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> CronScheduler:
        legacy_window = LegacyUpdateWindow.from_environment(environ)
        cron_expression = cron_schedule_from_env(environ)
        if cron_expression is not None:
            if legacy_window is not None:
                logger.warning(
                    "Both time window and cron expression provided - using cron expression for schedule."
                )
            expression = cron_expression
        elif legacy_window is not None:
            expression = legacy_window.cron_expression()
        else:
            expression = SCHEDULER_DEFAULT
        return cls.from_string(expression)

    @classmethod
    def from_string(cls, expression: str) -> CronScheduler:
        try:
            schedule = parse_schedule(expression)
        except CronError as exc:
            raise SchedulerError(
                f"Failed to generate corn expression '{expression}' due to `{exc}`"
            ) from exc
        return cls(schedule, determine_schedule_type(schedule))

    def duration_to_next(self, now: datetime) -> timedelta:
        """Time from ``now`` until the next scheduled point."""
        try:
            next_time = next(self.schedule.after(now))
        except StopIteration:
            raise SchedulerError("Unable to get cron expression schedule scheduled datetime") from None
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return next_time - now

    def should_discontinue_updates(self, now: datetime | None = None) -> bool:
        """Windows stop outside their time; trigger-time schedules never stop."""
        if self.schedule_type is ScheduleType.ONESHOT:
            return False
        now = now or datetime.now(timezone.utc)
        return not self.schedule.includes(now)

    async def wait_until_next_maintenance_window(self) -> datetime:
        """Sleep until the next scheduled time and return that time."""
        now = datetime.now(timezone.utc)
        delay = self.duration_to_next(now)
        if delay < timedelta(0):
            raise SchedulerError("Unable convert to Std duration due to negative duration")
        next_time = now + delay
        logger.info(
            "Sleeping until next scheduled time point %s (%d seconds).",
            next_time,
            int(delay.total_seconds()),
        )
        await asyncio.sleep(delay.total_seconds())
        return next_time
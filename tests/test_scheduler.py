from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from brupop.cron import parse_schedule
from brupop.scheduler import (
    CronScheduler,
    LegacyUpdateWindow,
    ScheduleType,
    SchedulerError,
    cron_schedule_from_env,
    determine_schedule_type,
    duration_between_next_two_points,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "expression, start, expected",
    [
        ("* * * * * * *", utc(2099, 1, 1, 2, 0, 0), timedelta(seconds=1)),
        ("10 10 10 * * * *", utc(2099, 1, 1, 2, 0, 0), timedelta(hours=24)),
        ("10 10 10 * * Mon *", utc(2099, 1, 1, 2, 0, 0), timedelta(days=7)),
    ],
)
def test_duration_between_next_two_points(expression, start, expected):
    assert duration_between_next_two_points(parse_schedule(expression), start) == expected


@pytest.mark.parametrize(
    "now, expression, expected",
    [
        (utc(2099, 12, 1, 2, 0, 0), "* * 4 1 12 * 2099", timedelta(hours=2)),
        (utc(2099, 12, 1, 0, 0, 0), "* * * 31 12 * 2099", timedelta(days=30)),
        (utc(2099, 12, 1, 0, 0, 0), "1 * * 1 12 * 2099", timedelta(seconds=1)),
    ],
)
def test_duration_to_next(now, expression, expected):
    assert CronScheduler.from_string(expression).duration_to_next(now) == expected


@pytest.mark.parametrize(
    "now, expression, expected",
    [
        (utc(2099, 12, 1, 2, 0, 0), "* * * * * * *", False),
        (utc(2099, 12, 1, 0, 0, 0), "10 10 10 * * * *", False),
        (utc(2099, 12, 1, 0, 0, 0), "* * 10 * * * *", True),
    ],
)
def test_should_discontinue_updates(now, expression, expected):
    assert CronScheduler.from_string(expression).should_discontinue_updates(now) is expected


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("0:0:0", "5:0:0", "* * 0-5 * * * *"),
        ("21:0:0", "8:30:0", "* * 21-23,0-8 * * * *"),
        ("15:0:0", "3:30:34", "* * 15-23,0-3 * * * *"),
    ],
)
def test_cron_expression_converter(start, end, expected):
    assert LegacyUpdateWindow(start, end).cron_expression() == expected


@pytest.mark.parametrize("start, end", [("24:00:00", "05:00:00"), ("09:00", "10:00:00"), ("a:b:c", "1:0:0")])
def test_invalid_window(start, end):
    with pytest.raises(SchedulerError):
        LegacyUpdateWindow(start, end).cron_expression()


def test_from_environment_legacy_window():
    env = {"UPDATE_WINDOW_START": "09:00:00", "UPDATE_WINDOW_STOP": "21:00:00"}
    result = CronScheduler.from_environment(env)
    assert result.schedule.same_spec(parse_schedule("* * 9-21 * * * *"))


def test_legacy_window_missing_start():
    with pytest.raises(SchedulerError):
        LegacyUpdateWindow.from_environment({"UPDATE_WINDOW_STOP": "21:00:00"})


def test_legacy_window_missing_stop():
    with pytest.raises(SchedulerError):
        LegacyUpdateWindow.from_environment({"UPDATE_WINDOW_START": "09:00:00"})


def test_legacy_window_absent():
    assert LegacyUpdateWindow.from_environment({}) is None


def test_from_environment_cron_expression():
    result = CronScheduler.from_environment({"SCHEDULER_CRON_EXPRESSION": "* * 5 * * * *"})
    assert result.schedule.same_spec(parse_schedule("* * 5 * * * *"))


def test_from_environment_default():
    result = CronScheduler.from_environment({})
    assert result.schedule.same_spec(parse_schedule("* * * * * * *"))
    assert result.schedule_type is ScheduleType.WINDOWED


def test_from_environment_cron_takes_precedence():
    env = {
        "SCHEDULER_CRON_EXPRESSION": "* * 5 * * * *",
        "UPDATE_WINDOW_START": "09:00:00",
        "UPDATE_WINDOW_STOP": "21:00:00",
    }
    result = CronScheduler.from_environment(env)
    assert result.schedule.same_spec(parse_schedule("* * 5 * * * *"))


def test_cron_schedule_from_env():
    assert cron_schedule_from_env({"SCHEDULER_CRON_EXPRESSION": "0 0 10 * * Mon *"}) == "0 0 10 * * Mon *"
    assert cron_schedule_from_env({}) is None


def test_from_string_rejects_bad_expression():
    with pytest.raises(SchedulerError):
        CronScheduler.from_string("not a cron")


def test_schedule_types():
    start = utc(2099, 1, 1, 2, 0, 0)
    assert determine_schedule_type(parse_schedule("* * 10-12 * * Mon *"), start) is ScheduleType.WINDOWED
    assert determine_schedule_type(parse_schedule("0 0 10 * * Mon *"), start) is ScheduleType.ONESHOT


def test_oneshot_never_discontinues():
    scheduler = CronScheduler.from_string("0 0 10 * * Mon *")
    assert scheduler.schedule_type is ScheduleType.ONESHOT
    assert scheduler.should_discontinue_updates() is False


def test_no_next_point_raises():
    schedule = parse_schedule("0 0 0 1 1 * 2099")
    with pytest.raises(SchedulerError):
        duration_between_next_two_points(schedule, utc(2098, 6, 1, 0, 0, 0))


@pytest.mark.asyncio
async def test_wait_until_next_maintenance_window():
    scheduler = CronScheduler.from_string("* * * * * * *")
    with patch("brupop.scheduler.asyncio.sleep", new_callable=AsyncMock) as sleep:
        before = datetime.now(timezone.utc)
        next_time = await scheduler.wait_until_next_maintenance_window()
    sleep.assert_awaited_once()
    delay = sleep.await_args.args[0]
    assert 0 < delay <= 1
    assert next_time > before
    assert next_time.microsecond == 0
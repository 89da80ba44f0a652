# brupop

Building blocks for orchestrating operating-system updates across a fleet of
Bottlerocket nodes in a Kubernetes cluster: when updates may run, how many
nodes may update at once, when a failed node may try again, what metrics to
expose about the fleet, and how to watch a cluster until every node is done.

The package uses only the Python standard library and supports Python 3.10
and later.

## What is inside

| Module | Purpose |
| --- | --- |
| `brupop.cron` | A cron parser with a leading seconds field and an optional trailing year field: `parse_schedule`, `CronSchedule`, `CronError`. |
| `brupop.scheduler` | Maintenance-window scheduling: `CronScheduler`, `LegacyUpdateWindow`, `ScheduleType`, `SchedulerError`. |
| `brupop.statemachine` | Retry back-off rules that decide when a crashed node may try to update again. |
| `brupop.controller` | Controller settings read from the environment: `read_env_var`, `max_concurrent_update`, `ControllerError`. |
| `brupop.metrics` | `HostsData` and `ControllerMetrics`, rendered in the Prometheus text format. |
| `brupop.nodes` | Finding nodes that do not carry the updater interface label. |
| `brupop.monitor` | `BrupopMonitor`, which polls a cluster until every node is idle at its target version. |

## Cron expressions

`parse_schedule` accepts six or seven whitespace-separated fields:
`second minute hour day-of-month month day-of-week [year]`. A missing year
field means every year. Fields take `*`, `?`, single values, ranges (`9-17`),
lists (`0,30`) and steps (`*/15`, `5/10`). Months and days of the week may be
given by name (`Jan`, `Monday`); days of the week are numbered 1 (Sunday) to
7 (Saturday). Years run from 1970 to 2100. Times are evaluated in UTC; naive
datetimes are taken as UTC.

```python
from datetime import datetime, timezone

from brupop.cron import parse_schedule

schedule = parse_schedule("10 10 10 * * Mon *")
start = datetime(2099, 1, 1, 2, 0, 0, tzinfo=timezone.utc)
upcoming = schedule.after(start)     # generator of the following trigger times
first, second = next(upcoming), next(upcoming)
second - first                       # timedelta(days=7)
```

`CronSchedule.includes(moment)` tells whether a moment is a scheduled time,
and `same_spec(other)` whether two schedules fire at exactly the same times.
Bad expressions raise `CronError` (a `ValueError`).

## Scheduling updates

The scheduler is configured through environment variables, read from
`os.environ` or from a mapping passed in. `SCHEDULER_CRON_EXPRESSION` takes a
cron expression; the older `UPDATE_WINDOW_START` and `UPDATE_WINDOW_STOP`
pair (in `HH:MM:SS`) is turned into one covering the whole hours from start to
stop, wrapping past midnight when the start is later than the stop. If both
styles are given the cron expression wins (with a logged warning); with
neither set the schedule is `* * * * * * *`, so updates may run at any time.
Giving only one of the two window variables raises `SchedulerError`.

```python
from datetime import datetime, timezone

from brupop.scheduler import CronScheduler, LegacyUpdateWindow

LegacyUpdateWindow("21:00:00", "08:30:00").cron_expression()
# "* * 21-23,0-8 * * * *"

scheduler = CronScheduler.from_environment({
    "UPDATE_WINDOW_START": "21:00:00",
    "UPDATE_WINDOW_STOP": "08:30:00",
})

now = datetime.now(timezone.utc)
print(scheduler.duration_to_next(now))
print(scheduler.should_discontinue_updates(now))
```

A schedule whose next two points are one second apart (`* * 10 * * * *`) is
`ScheduleType.WINDOWED`: updates should stop once the current time falls
outside it. Any other schedule (`0 0 10 * * Mon *`) is `ScheduleType.ONESHOT`:
once started, updates are never told to stop.

```python
from datetime import datetime, timezone

from brupop.scheduler import CronScheduler

window = CronScheduler.from_string("* * 10 * * * *")
midnight = datetime(2099, 12, 1, 0, 0, 0, tzinfo=timezone.utc)
window.should_discontinue_updates(midnight)   # True: outside 10:00-10:59
```

`await scheduler.wait_until_next_maintenance_window()` sleeps until the next
scheduled time and returns it. Invalid expressions and malformed update
windows raise `SchedulerError`.

## Concurrency and retries

```python
from datetime import datetime, timedelta, timezone

from brupop.controller import max_concurrent_update
from brupop.statemachine import (
    exponential_backoff_time_with_upper_limit,
    node_allowed_to_update,
)

max_concurrent_update({"MAX_CONCURRENT_UPDATE": "2"})    # 2
exponential_backoff_time_with_upper_limit(244, 5, 1024)  # True: past 2**5 minutes
exponential_backoff_time_with_upper_limit(30, 5, 1024)   # False: still backing off

now = datetime.now(timezone.utc)
node_allowed_to_update(None, 0, now)                          # True: never failed
node_allowed_to_update(now - timedelta(minutes=10), 4, now)   # False: needs more than 16 minutes
```

`MAX_CONCURRENT_UPDATE` also accepts `unlimited` (in any case), which maps to
`brupop.controller.UNLIMITED`; a missing, negative or non-numeric value raises
`ControllerError`. The retry delay is `2 ** crash_count` minutes, capped at
one day.

## Metrics

```python
from brupop.metrics import CONTENT_TYPE, ControllerMetrics, HostsData

metrics = ControllerMetrics()
metrics.emit_metrics(HostsData({"1.6.0": 3}, {"Idle": 3}))
print(metrics.render())
```

prints

```
# HELP brupop_hosts_state Brupop host's state
# TYPE brupop_hosts_state gauge
brupop_hosts_state{state="Idle"} 3
# HELP brupop_hosts_version Brupop host's bottlerocket version
# TYPE brupop_hosts_version gauge
brupop_hosts_version{bottlerocket_version="1.6.0"} 3
```

`samples()` returns the same data as `(metric, labels, value)` tuples, and
`CONTENT_TYPE` is the matching HTTP content type. `emit_metrics` replaces the
data in one step and skips the update if another thread is reading it.

## Nodes and monitoring

```python
from brupop.nodes import find_unlabeled_nodes

find_unlabeled_nodes([
    ("node-a", {"bottlerocket.aws/updater-interface-version": "2.0.0"}),
    ("node-b", None),
])   # ["node-b"]
```

`BrupopMonitor` takes any client with async `fetch_shadows()` (a sequence of
`Shadow`) and `fetch_brupop_pods()` (a sequence of pod mappings with a
`status.phase`). `run_monitor()` polls every 30 seconds; it allows five
retries while pods are not all running or shadows lack a status, returns once
every shadow is `Idle` at its target version, and raises `MonitorError` on
unhealthy pods or when `estimate_expire_time(len(shadows))` seconds (300 per
node plus 300) have passed.

```python
from brupop.monitor import estimate_expire_time

estimate_expire_time(3)   # 1200 seconds
```

## What this package does not do

It holds no Kubernetes client and no controller loop: it does not watch,
list, change or delete resources in a cluster, and `BrupopMonitor` relies on
the client you give it. It runs no HTTP server; `ControllerMetrics.render`
produces the text for one to serve. It does not create or remove cloud
resources or test clusters, and it has no command-line program.

## Running the tests

Install the `test` extra and run pytest from the project directory.
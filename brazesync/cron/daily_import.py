from __future__ import annotations

"""Cron job: import yesterday's Braze analytics into PostHog.

Run daily (e.g. 01:00 UTC), after Braze has closed the previous day::

    python -m brazesync.cron.daily_import

Each resource type is switched on by its ``BRAZE_IMPORT_*`` flag and runs as a
separate job; see :mod:`brazesync.cron.imports`.
"""

import asyncio
from typing import List, Optional, Tuple

from brazesync.cron.imports import JobContext, JobName, LocalScheduler, Scheduler
from brazesync.settings import BrazeConfig, load_config
from brazesync.utils.braze_client import BrazeClient
from brazesync.utils.capture import EventSink, PosthogCapture
from brazesync.utils.clock import Clock, FixedClock, system_clock
from brazesync.utils.logger import configure_logging, logger

# Config flag → list job, in dispatch order
DAILY_JOBS: Tuple[Tuple[str, JobName], ...] = (
    ("import_campaigns", JobName.track_campaigns),
    ("import_canvases", JobName.track_canvases),
    ("import_custom_events", JobName.track_custom_events),
    ("import_kpis", JobName.track_kpis),
    ("import_feeds", JobName.track_feeds),
    ("import_segments", JobName.track_segments),
    ("import_sessions", JobName.track_sessions),
)


def enabled_jobs(config: BrazeConfig) -> List[JobName]:
    return [job for flag, job in DAILY_JOBS if getattr(config, flag)]


async def run_every_day(ctx: JobContext) -> List[JobName]:
    """Trigger every enabled list job; returns the jobs that were started.

    Resource types are independent: a job that raises is logged and recorded
    in ``ctx.failed`` and the pass moves on to the next one. Nothing is
    re-raised, since retrying the whole pass would capture the resources that
    succeeded a second time.
    """
    jobs = enabled_jobs(ctx.config)
    for job in jobs:
        await ctx.isolate(job, {}, ctx.run_now(job))
    logger.info(
        "import.pass_complete",
        extra={
            "jobs": [job.value for job in jobs],
            "failed": [job.value for job, _ in ctx.failed],
        },
    )
    return jobs


def build_context(
    config: Optional[BrazeConfig] = None,
    *,
    client: Optional[BrazeClient] = None,
    sink: Optional[EventSink] = None,
    scheduler: Optional[Scheduler] = None,
    clock: Clock = system_clock,
) -> JobContext:
    """Assemble the collaborators of one pass.

    The clock is frozen at pass start so the activity window and the series
    ``ending_date`` agree even when the pass straddles midnight.
    """
    config = config or load_config()
    return JobContext(
        config=config,
        client=client or BrazeClient.from_config(config),
        sink=sink or PosthogCapture(),
        scheduler=scheduler or LocalScheduler(),
        clock=FixedClock(clock.now()),
    )


async def _run() -> List[str]:
    configure_logging()
    ctx = build_context()
    try:
        await run_every_day(ctx)
    finally:
        await ctx.client.aclose()
    return [job.value for job, _ in ctx.failed]


if __name__ == "__main__":
    asyncio.run(_run())

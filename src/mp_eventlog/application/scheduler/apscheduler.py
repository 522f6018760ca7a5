"""Application scheduler – APSchedulerAdapter (APScheduler 3 ``AsyncIOScheduler``)."""
from __future__ import annotations

from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from mp_eventlog.application.scheduler.job import Job

__all__ = ["APSchedulerAdapter"]


class APSchedulerAdapter:
    """Fixed-rate worker backed by APScheduler.

    Each job runs with ``max_instances=1`` and ``coalesce=True``: a tick that
    fires while the previous run is still busy is dropped instead of queued.
    """

    def __init__(self, scheduler: Any | None = None) -> None:
        self._jobs: dict[str, Job] = {}
        self._scheduler = scheduler
        self._started = False

    def _get_scheduler(self) -> Any:
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler()
        return self._scheduler

    def add_job(self, job: Job) -> None:
        self._jobs[job.id] = job
        if self._started:
            self._register_job(self._get_scheduler(), job)

    def remove_job(self, job_id: str) -> None:
        if self._jobs.pop(job_id, None) is not None and self._started:
            self._get_scheduler().remove_job(job_id)

    async def start(self) -> None:
        scheduler = self._get_scheduler()
        for job in self._jobs.values():
            self._register_job(scheduler, job)
        scheduler.start()
        self._started = True

    def _register_job(self, scheduler: Any, job: Job) -> None:
        scheduler.add_job(
            job.handler,
            trigger="interval",
            seconds=job.interval_seconds,
            id=job.id,
            name=job.name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

    async def stop(self) -> None:
        if self._started:
            self._get_scheduler().shutdown(wait=False)
            self._started = False

    def list_jobs(self) -> list[Job]:
        return list(self._jobs.values())

"""Application scheduler – Scheduler protocol and a virtual-time implementation for tests."""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from mp_eventlog.application.scheduler.job import Job

__all__ = ["InMemoryScheduler", "Scheduler"]


@runtime_checkable
class Scheduler(Protocol):
    """Port: the worker that drives repeating timed tasks."""

    def add_job(self, job: Job) -> None: ...
    def remove_job(self, job_id: str) -> None: ...
    async def start(self) -> None: ...
    async def stop(self) -> None: ...
    def list_jobs(self) -> list[Job]: ...


class InMemoryScheduler:
    """Nothing runs on its own: a test calls :meth:`trigger` or :meth:`advance`.

    ``fired`` records the id of every job run, in order.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._next_due: dict[str, float] = {}
        self._elapsed = 0.0
        self._running = False
        self.fired: list[str] = []

    @property
    def is_running(self) -> bool:
        return self._running

    def add_job(self, job: Job) -> None:
        self._jobs[job.id] = job
        self._next_due[job.id] = self._elapsed + job.interval_seconds

    def remove_job(self, job_id: str) -> None:
        self._jobs.pop(job_id, None)
        self._next_due.pop(job_id, None)

    def list_jobs(self) -> list[Job]:
        return list(self._jobs.values())

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False

    async def trigger(self, job_id: str) -> None:
        """Run one tick of *job_id* now, whatever its schedule."""
        job = self._jobs[job_id]
        self.fired.append(job_id)
        await job.handler()

    async def advance(self, seconds: float) -> int:
        """Move virtual time forward, running each job as often as it came due.

        Runs happen earliest-due first; returns how many there were.
        """
        if not self._running:
            raise RuntimeError("InMemoryScheduler.advance() before start()")
        target = self._elapsed + seconds
        runs = 0
        while due := [(at, job_id) for job_id, at in self._next_due.items() if at <= target]:
            at, job_id = min(due)
            self._elapsed = at
            self._next_due[job_id] = at + self._jobs[job_id].interval_seconds
            await self.trigger(job_id)
            runs += 1
        self._elapsed = target
        return runs

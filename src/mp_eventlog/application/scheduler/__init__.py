"""Application scheduler – the worker that drives polling loops."""
from mp_eventlog.application.scheduler.apscheduler import APSchedulerAdapter
from mp_eventlog.application.scheduler.job import Job
from mp_eventlog.application.scheduler.scheduler import InMemoryScheduler, Scheduler

__all__ = ["APSchedulerAdapter", "InMemoryScheduler", "Job", "Scheduler"]

"""Resilience – command-level timeouts."""
from mp_eventlog.resilience.timeouts.policy import TimeoutPolicy

__all__ = ["TimeoutPolicy"]

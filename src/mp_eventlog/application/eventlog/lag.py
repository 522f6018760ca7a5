"""Application event log – LagMonitor."""
from __future__ import annotations

from mp_eventlog.kernel.errors import GroupMissingError, StoreUnavailableError
from mp_eventlog.kernel.messaging import OrderedLog
from mp_eventlog.observability.logging import get_logger
from mp_eventlog.observability.metrics import STREAM_LAG, Metrics, NoopMetrics
from mp_eventlog.resilience import StoreCallPolicy

__all__ = ["LagMonitor"]

logger = get_logger(__name__)


class LagMonitor:
    """Consumer lag as the group's delivered-but-unacknowledged count.

    The value comes from the log's pending summary; it is never derived from
    sequence numbers tracked by producers or consumers.
    """

    def __init__(
        self,
        log: OrderedLog,
        metrics: Metrics | None = None,
        *,
        gauge_name: str = STREAM_LAG.name,
        policy: StoreCallPolicy | None = None,
    ) -> None:
        self._log = log
        self._policy = policy or StoreCallPolicy()
        self._gauge = (metrics or NoopMetrics()).gauge(gauge_name, STREAM_LAG.description)
        self._last: dict[tuple[str, str], int] = {}

    async def current_lag(self, stream_key: str, group_name: str) -> int:
        summary = await self._policy.run(lambda: self._log.pending(stream_key, group_name))
        return max(summary.count, 0)

    async def sample(self, stream_key: str, group_name: str) -> int | None:
        """Refresh the gauge; on failure keep its previous value and return ``None``."""
        try:
            lag = await self.current_lag(stream_key, group_name)
        except (StoreUnavailableError, GroupMissingError) as exc:
            logger.warning("lag.sample_failed", stream=stream_key, group=group_name, **exc.log_fields())
            return None
        self._gauge.set(float(lag), {"stream": stream_key, "group": group_name})
        self._last[(stream_key, group_name)] = lag
        return lag

    def last_sampled(self, stream_key: str, group_name: str) -> int | None:
        return self._last.get((stream_key, group_name))

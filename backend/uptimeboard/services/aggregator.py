"""Aggregator - derives dashboard figures from a history window."""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..utils.time import utc_now
from .history import HistoryRow, HistoryStore, Window
from .prober import Status
from .registry import Target

# Uptime reported before any data exists
EMPTY_WINDOW_UPTIME = 100.0


@dataclass(frozen=True)
class AggregateView:
    """Aggregated state of a target. avg_latency_ms is None when not available."""
    target: Target
    current_status: Status
    uptime_pct: float
    avg_latency_ms: Optional[float]
    current_latency_ms: Optional[int] = None
    last_checked_at: Optional[datetime] = None
    sample_count: int = 0


def uptime_percent(rows: Sequence[HistoryRow]) -> float:
    if not rows:
        return EMPTY_WINDOW_UPTIME
    up_count = sum(1 for r in rows if r.status == Status.UP)
    return round(100 * up_count / len(rows), 2)


def average_latency(rows: Iterable[HistoryRow]) -> Optional[float]:
    """Mean of the latencies that are present; rows without one are skipped."""
    latencies = [r.latency_ms for r in rows if r.latency_ms is not None]
    if not latencies:
        return None
    return round(sum(latencies) / len(latencies), 2)


def summarize(
    target: Target,
    rows: Sequence[HistoryRow],
    latest: Optional[HistoryRow] = None,
) -> AggregateView:
    """Build the view from rows ordered oldest to newest.

    ``latest`` overrides the newest row of the window for the current status,
    so a duration window with no recent rows still reports the last known state.
    """
    if latest is None and rows:
        latest = rows[-1]
    return AggregateView(
        target=target,
        current_status=latest.status if latest else Status.UNKNOWN,
        uptime_pct=uptime_percent(rows),
        avg_latency_ms=average_latency(rows),
        current_latency_ms=latest.latency_ms if latest else None,
        last_checked_at=latest.observed_at if latest else None,
        sample_count=len(rows),
    )


class Aggregator:
    """Reads windows from the history store and summarizes them."""

    def __init__(self, store: HistoryStore):
        self.store = store

    async def aggregate(
        self,
        target: Target,
        window: Window,
        now: Optional[datetime] = None,
    ) -> AggregateView:
        """Summarize one target from a single window read.

        The current status comes from the newest row of the window. Only an
        empty duration window falls back to the newest row observed before
        the cutoff, which a concurrent append can never produce, so the
        status and the figures always describe the same rows.
        """
        now = now or utc_now()
        rows = await self.store.window(target.name, window, now=now)
        latest = None
        if not rows and window.duration is not None:
            latest = await self.store.latest(target.name, before=now - window.duration)
        return summarize(target, rows, latest=latest)

    async def aggregate_all(
        self,
        targets: Iterable[Target],
        window: Window,
        now: Optional[datetime] = None,
    ) -> list[AggregateView]:
        return [await self.aggregate(t, window, now=now) for t in targets]

"""Status schemas for the dashboard API."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..services.aggregator import AggregateView
from ..services.history import HistoryRow


class TargetSummary(BaseModel):
    """Aggregated state of one target."""
    name: str
    url: str
    status: str  # up, down, unknown
    latency_ms: Optional[int] = None
    uptime_percent: float
    avg_latency_ms: Optional[float] = None  # null when no latency was recorded
    sample_count: int
    last_check: Optional[datetime] = None

    @classmethod
    def from_view(cls, view: AggregateView) -> "TargetSummary":
        return cls(
            name=view.target.name,
            url=view.target.url,
            status=view.current_status.value,
            latency_ms=view.current_latency_ms,
            uptime_percent=view.uptime_pct,
            avg_latency_ms=view.avg_latency_ms,
            sample_count=view.sample_count,
            last_check=view.last_checked_at,
        )


class StatusOverview(BaseModel):
    """Dashboard overview data."""
    generated_at: datetime
    window_hours: float
    total_targets: int
    targets_up: int
    targets_down: int
    targets_unknown: int
    targets: List[TargetSummary]


class HistoryPoint(BaseModel):
    """A point in the response-time chart."""
    observed_at: datetime
    status: str
    latency_ms: Optional[int] = None
    status_code: Optional[int] = None

    @classmethod
    def from_row(cls, row: HistoryRow) -> "HistoryPoint":
        return cls(
            observed_at=row.observed_at,
            status=row.status.value,
            latency_ms=row.latency_ms,
            status_code=row.status_code,
        )


class HistoryResponse(BaseModel):
    """Chart points for one target, oldest first."""
    name: str
    points: List[HistoryPoint]

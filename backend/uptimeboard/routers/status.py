"""Status API for the dashboard."""
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import Settings
from ..dependencies import get_aggregator, get_registry, get_settings, get_store
from ..schemas.status import HistoryPoint, HistoryResponse, StatusOverview, TargetSummary
from ..services.aggregator import Aggregator
from ..services.history import HistoryStore, Window
from ..services.prober import Status
from ..services.registry import TargetRegistry
from ..utils.time import utc_now

router = APIRouter(prefix="/api/status", tags=["status"])


def uptime_window(settings: Settings) -> Window:
    return Window.since(timedelta(hours=settings.uptime_window_hours))


async def build_overview(
    registry: TargetRegistry,
    aggregator: Aggregator,
    settings: Settings,
) -> StatusOverview:
    """Aggregate every registered target, in registry order."""
    now = utc_now()
    views = await aggregator.aggregate_all(registry, uptime_window(settings), now=now)
    summaries = [TargetSummary.from_view(v) for v in views]

    counts = {Status.UP: 0, Status.DOWN: 0, Status.UNKNOWN: 0}
    for view in views:
        counts[view.current_status] += 1

    return StatusOverview(
        generated_at=now,
        window_hours=settings.uptime_window_hours,
        total_targets=len(summaries),
        targets_up=counts[Status.UP],
        targets_down=counts[Status.DOWN],
        targets_unknown=counts[Status.UNKNOWN],
        targets=summaries,
    )


@router.get("/overview", response_model=StatusOverview)
async def get_status_overview(
    registry: TargetRegistry = Depends(get_registry),
    aggregator: Aggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_settings),
):
    """Current status, uptime and average latency for every target."""
    return await build_overview(registry, aggregator, settings)


@router.get("/targets/{name}/history", response_model=HistoryResponse)
async def get_target_history(
    name: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    registry: TargetRegistry = Depends(get_registry),
    store: HistoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Most recent results for one target, oldest first, for charting."""
    target = registry.get(name)
    if target is None:
        raise HTTPException(status_code=404, detail="Target not found")

    rows = await store.window(target.name, Window.last(limit or settings.history_points))
    return HistoryResponse(name=target.name, points=[HistoryPoint.from_row(r) for r in rows])

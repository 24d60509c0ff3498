"""Self-refreshing HTML status page."""
import os

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ..config import Settings
from ..dependencies import get_aggregator, get_registry, get_settings, get_store
from ..services.aggregator import Aggregator
from ..services.history import HistoryStore, Window
from ..services.registry import TargetRegistry
from .status import build_overview

router = APIRouter(tags=["dashboard"])

templates = Jinja2Templates(directory=os.path.join(os.path.dirname(__file__), "..", "templates"))


def _format_ms(value) -> str:
    if value is None:
        return "N/A"
    return f"{value:.2f} ms" if isinstance(value, float) else f"{value} ms"


templates.env.filters["ms"] = _format_ms


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def dashboard(
    request: Request,
    registry: TargetRegistry = Depends(get_registry),
    aggregator: Aggregator = Depends(get_aggregator),
    store: HistoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    overview = await build_overview(registry, aggregator, settings)

    charts = {}
    for target in registry:
        rows = await store.window(target.name, Window.last(settings.history_points))
        charts[target.name] = {
            "labels": [r.observed_at.strftime("%H:%M:%S") for r in rows],
            "latency": [r.latency_ms for r in rows],
        }

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "overview": overview,
            "charts": charts,
            "refresh_seconds": settings.page_refresh_seconds,
        },
    )

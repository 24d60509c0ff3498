"""FastAPI dependencies exposing the runtime objects built in the lifespan."""
from fastapi import Request

from .config import Settings
from .services.aggregator import Aggregator
from .services.history import HistoryStore
from .services.registry import TargetRegistry
from .services.scheduler import SchedulerService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> TargetRegistry:
    return request.app.state.registry


def get_store(request: Request) -> HistoryStore:
    return request.app.state.store


def get_aggregator(request: Request) -> Aggregator:
    return request.app.state.aggregator


def get_scheduler(request: Request) -> SchedulerService | None:
    return getattr(request.app.state, "scheduler", None)

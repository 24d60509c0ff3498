"""Services for probing, history storage, aggregation, and scheduling."""
from .aggregator import AggregateView, Aggregator
from .history import HistoryRow, HistoryStore, Window
from .prober import Prober, ProbeResult, Status
from .registry import Target, TargetRegistry, load_targets
from .scheduler import SchedulerConfig, SchedulerService

__all__ = [
    "AggregateView",
    "Aggregator",
    "HistoryRow",
    "HistoryStore",
    "Window",
    "Prober",
    "ProbeResult",
    "Status",
    "Target",
    "TargetRegistry",
    "load_targets",
    "SchedulerConfig",
    "SchedulerService",
]

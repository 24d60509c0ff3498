"""Pydantic schemas for API responses."""
from .status import (
    TargetSummary,
    StatusOverview,
    HistoryPoint,
    HistoryResponse,
)

__all__ = [
    "TargetSummary",
    "StatusOverview",
    "HistoryPoint",
    "HistoryResponse",
]

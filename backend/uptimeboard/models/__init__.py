"""Database models."""
from .probe_result import ProbeResultRecord

__all__ = ["ProbeResultRecord"]

"""ProbeResultRecord model - append-only status history for targets."""
from sqlalchemy import Column, DateTime, Index, Integer, String

from ..database import Base


class ProbeResultRecord(Base):
    """One probe outcome for one target. Rows are never updated."""

    __tablename__ = "probe_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    target_name = Column(String, nullable=False)
    status = Column(String, nullable=False)  # up, down
    latency_ms = Column(Integer, nullable=True)  # NULL when the target did not answer
    status_code = Column(Integer, nullable=True)
    error = Column(String, nullable=True)
    observed_at = Column(DateTime, nullable=False)  # naive UTC

    __table_args__ = (
        Index("idx_probe_results_target_observed", "target_name", "observed_at"),
        Index("idx_probe_results_observed", "observed_at"),
    )

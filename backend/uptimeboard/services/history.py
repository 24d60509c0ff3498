"""History store - append-only time series of probe results."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..exceptions import StorageError
from ..models import ProbeResultRecord
from ..utils.db_utils import retry_on_lock
from ..utils.time import as_aware_utc, to_naive_utc, utc_now
from .prober import ProbeResult, Status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryRow:
    """A persisted probe result."""
    id: int
    target_name: str
    status: Status
    observed_at: datetime
    latency_ms: Optional[int] = None
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Window:
    """A recent slice of history: the last N rows, or rows within a duration."""
    limit: Optional[int] = None
    duration: Optional[timedelta] = None

    def __post_init__(self):
        if (self.limit is None) == (self.duration is None):
            raise ValueError("Window needs exactly one of limit or duration")
        if self.limit is not None and self.limit < 1:
            raise ValueError("Window limit must be positive")
        if self.duration is not None and self.duration <= timedelta(0):
            raise ValueError("Window duration must be positive")

    @classmethod
    def last(cls, limit: int) -> "Window":
        return cls(limit=limit)

    @classmethod
    def since(cls, duration: timedelta) -> "Window":
        return cls(duration=duration)


def _to_row(record: ProbeResultRecord) -> HistoryRow:
    return HistoryRow(
        id=record.id,
        target_name=record.target_name,
        status=Status(record.status),
        observed_at=as_aware_utc(record.observed_at),
        latency_ms=record.latency_ms,
        status_code=record.status_code,
        error=record.error,
    )


class HistoryStore:
    """Owns the probe_results table.

    Every operation runs in its own session, so the ingestion job, the
    retention job and page rendering never share a transaction. Database
    errors surface as StorageError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(self, result: ProbeResult) -> HistoryRow:
        """Insert one row for a probe result."""
        if result.status not in (Status.UP, Status.DOWN):
            raise ValueError(f"Cannot store status {result.status!r}")

        async def _insert() -> ProbeResultRecord:
            async with self._session_factory() as session:
                record = ProbeResultRecord(
                    target_name=result.target_name,
                    status=result.status.value,
                    latency_ms=result.latency_ms,
                    status_code=result.status_code,
                    error=result.error,
                    observed_at=to_naive_utc(result.observed_at),
                )
                session.add(record)
                await session.commit()
                return record

        try:
            record = await retry_on_lock(_insert)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to store result for {result.target_name}: {e}") from e
        return _to_row(record)

    async def latest(self, target_name: str, before: Optional[datetime] = None) -> Optional[HistoryRow]:
        """Most recent row for a target, or None if it has never been probed.

        With ``before``, only rows observed strictly earlier are considered.
        """
        stmt = (
            select(ProbeResultRecord)
            .where(ProbeResultRecord.target_name == target_name)
            .order_by(ProbeResultRecord.observed_at.desc(), ProbeResultRecord.id.desc())
            .limit(1)
        )
        if before is not None:
            stmt = stmt.where(ProbeResultRecord.observed_at < to_naive_utc(before))
        try:
            async with self._session_factory() as session:
                record = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read latest result for {target_name}: {e}") from e
        return _to_row(record) if record else None

    async def window(
        self,
        target_name: str,
        window: Window,
        newest_first: bool = False,
        now: Optional[datetime] = None,
    ) -> list[HistoryRow]:
        """Rows for a target within a window.

        Ordered oldest to newest by default, which is what charts and the
        aggregator expect; pass newest_first=True for the reverse.
        """
        stmt = (
            select(ProbeResultRecord)
            .where(ProbeResultRecord.target_name == target_name)
            .order_by(ProbeResultRecord.observed_at.desc(), ProbeResultRecord.id.desc())
        )
        if window.limit is not None:
            stmt = stmt.limit(window.limit)
        else:
            cutoff = to_naive_utc((now or utc_now()) - window.duration)
            stmt = stmt.where(ProbeResultRecord.observed_at >= cutoff)

        try:
            async with self._session_factory() as session:
                records = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read history for {target_name}: {e}") from e

        rows = [_to_row(r) for r in records]
        if not newest_first:
            rows.reverse()
        return rows

    async def prune(self, older_than: datetime) -> int:
        """Delete rows observed strictly before the cutoff. Returns the count deleted."""
        cutoff = to_naive_utc(older_than)

        async def _delete() -> int:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(ProbeResultRecord).where(ProbeResultRecord.observed_at < cutoff)
                )
                await session.commit()
                return result.rowcount or 0

        try:
            return await retry_on_lock(_delete)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to prune history: {e}") from e

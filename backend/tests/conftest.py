from datetime import datetime, timezone

import pytest

from uptimeboard.database import close_db, create_engine, create_session_factory, init_db
from uptimeboard.services.history import HistoryStore
from uptimeboard.services.prober import ProbeResult, Status

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'history.db'}"


@pytest.fixture
async def store(anyio_backend, database_url):
    engine = create_engine(database_url)
    await init_db(engine)
    yield HistoryStore(create_session_factory(engine))
    await close_db(engine)


@pytest.fixture
def make_result():
    def _make(name, status, latency_ms=None, observed_at=BASE_TIME, status_code=None):
        if status == Status.UP and status_code is None:
            status_code = 200
        return ProbeResult(
            target_name=name,
            status=status,
            observed_at=observed_at,
            latency_ms=latency_ms,
            status_code=status_code,
            error=None if status == Status.UP else "Connection error: refused",
        )
    return _make


@pytest.fixture
def targets_file(tmp_path):
    path = tmp_path / "targets.yaml"
    path.write_text(
        "targets:\n"
        "  - name: A\n"
        "    url: https://a.example.com/\n"
        "  - name: B\n"
        "    url: https://b.example.com/\n"
    )
    return path

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from uptimeboard import main
from uptimeboard.config import Settings
from uptimeboard.exceptions import ConfigError, StorageError
from uptimeboard.main import create_app
from uptimeboard.services.prober import ProbeResult, Prober, Status
from uptimeboard.services.scheduler import SchedulerService
from uptimeboard.utils.time import utc_now


@pytest.fixture
def settings(tmp_path, targets_file):
    return Settings(
        data_path=str(tmp_path),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'app.db'}",
        targets_file=str(targets_file),
        scheduler_enabled=False,
        history_points=10,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


def seed(client, name, entries):
    """Append (status, latency) pairs, oldest first, ending a minute ago."""
    store = client.app.state.store
    now = utc_now()
    for i, (status, latency) in enumerate(entries):
        observed_at = now - timedelta(minutes=len(entries) - i)
        result = ProbeResult(
            target_name=name,
            status=status,
            observed_at=observed_at,
            latency_ms=latency,
            status_code=200 if status == Status.UP else None,
        )
        client.portal.call(store.append, result)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["targets"] == 2
    assert body["scheduler_running"] is False


def test_overview_cold_start(client):
    r = client.get("/api/status/overview")
    assert r.status_code == 200
    data = r.json()
    assert data["total_targets"] == 2
    assert data["targets_unknown"] == 2
    assert [t["name"] for t in data["targets"]] == ["A", "B"]
    for target in data["targets"]:
        assert target["status"] == "unknown"
        assert target["uptime_percent"] == 100.0
        assert target["avg_latency_ms"] is None
        assert target["last_check"] is None


def test_overview_aggregates_history(client):
    seed(client, "A", [(Status.UP, 50), (Status.DOWN, None), (Status.UP, 70)])
    seed(client, "B", [(Status.DOWN, None)])

    data = client.get("/api/status/overview").json()
    a, b = data["targets"]

    assert a["status"] == "up"
    assert a["uptime_percent"] == 66.67
    assert a["avg_latency_ms"] == 60.0
    assert a["latency_ms"] == 70
    assert a["sample_count"] == 3

    assert b["status"] == "down"
    assert b["uptime_percent"] == 0.0
    assert b["avg_latency_ms"] is None

    assert data["targets_up"] == 1
    assert data["targets_down"] == 1
    assert data["targets_unknown"] == 0


def test_history_is_oldest_first(client):
    seed(client, "A", [(Status.UP, 10), (Status.UP, 20), (Status.DOWN, None)])

    r = client.get("/api/status/targets/A/history")
    assert r.status_code == 200
    points = r.json()["points"]
    assert [p["latency_ms"] for p in points] == [10, 20, None]
    assert [p["status"] for p in points] == ["up", "up", "down"]

    limited = client.get("/api/status/targets/A/history?limit=2").json()["points"]
    assert [p["latency_ms"] for p in limited] == [20, None]


def test_history_unknown_target(client):
    r = client.get("/api/status/targets/nope/history")
    assert r.status_code == 404


def test_dashboard_page(client, settings):
    seed(client, "A", [(Status.UP, 42)])

    r = client.get("/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    html = r.text
    assert f'content="{settings.page_refresh_seconds}"' in html
    assert "https://a.example.com/" in html
    assert "42 ms" in html
    assert "100.00%" in html
    # B has never been probed
    assert "N/A" in html
    assert "UNKNOWN" in html


def test_storage_error_maps_to_503(client, monkeypatch):
    async def unavailable(*args, **kwargs):
        raise StorageError("database is locked")

    monkeypatch.setattr(client.app.state.store, "window", unavailable)

    r = client.get("/api/status/overview")
    assert r.status_code == 503
    assert r.json()["detail"] == "History storage unavailable"


def test_bad_targets_file_aborts_startup(tmp_path, settings):
    bad = tmp_path / "dupes.yaml"
    bad.write_text(
        "- name: A\n  url: https://a.example.com/\n"
        "- name: A\n  url: https://b.example.com/\n"
    )
    app = create_app(settings.model_copy(update={"targets_file": str(bad)}))
    with pytest.raises(ConfigError):
        with TestClient(app):
            pass


@pytest.fixture
def closed_engines(monkeypatch):
    closed = []

    async def recording_close_db(engine):
        closed.append(engine)
        await engine.dispose()

    monkeypatch.setattr(main, "close_db", recording_close_db)
    return closed


def test_engine_disposed_when_init_db_fails(settings, monkeypatch, closed_engines):
    async def failing_init_db(engine):
        raise StorageError("disk full")

    monkeypatch.setattr(main, "init_db", failing_init_db)

    with pytest.raises(StorageError):
        with TestClient(create_app(settings)):
            pass
    assert len(closed_engines) == 1


def test_engine_and_prober_closed_when_scheduler_start_fails(settings, monkeypatch, closed_engines):
    closed_probers = []
    original_aclose = Prober.aclose

    async def recording_aclose(self):
        closed_probers.append(self)
        await original_aclose(self)

    def failing_start(self):
        raise RuntimeError("scheduler failed to start")

    monkeypatch.setattr(Prober, "aclose", recording_aclose)
    monkeypatch.setattr(SchedulerService, "start", failing_start)

    app = create_app(settings.model_copy(update={"scheduler_enabled": True}))
    with pytest.raises(RuntimeError):
        with TestClient(app):
            pass
    assert len(closed_engines) == 1
    assert len(closed_probers) == 1

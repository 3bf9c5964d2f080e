import asyncio

import pytest

from orderdesk.core.rate_limit import InMemoryRateLimitStore, client_key, run_sweeper


class _Req:

    def __init__(self, headers=None, host=None):
        self.headers = headers or {}
        self.client = type("C", (), {"host": host})() if host else None


def test_denies_request_over_limit_within_window():
    store = InMemoryRateLimitStore(limit=3, window_ms=1000)
    assert [store.allow("1.1.1.1", now_ms=t) for t in (0, 10, 20)] == [True] * 3
    assert store.allow("1.1.1.1", now_ms=30) is False
    assert store.allow("1.1.1.1", now_ms=999) is False


def test_new_window_after_reset():
    store = InMemoryRateLimitStore(limit=2, window_ms=1000)
    store.allow("k", now_ms=0)
    store.allow("k", now_ms=1)
    assert store.allow("k", now_ms=2) is False

    assert store.allow("k", now_ms=1000) is True
    # counter restarted at 1, so one more fits
    assert store.allow("k", now_ms=1001) is True
    assert store.allow("k", now_ms=1002) is False


def test_keys_are_independent():
    store = InMemoryRateLimitStore(limit=1, window_ms=1000)
    assert store.allow("a", now_ms=0)
    assert not store.allow("a", now_ms=1)
    assert store.allow("b", now_ms=1)


def test_per_call_limit_override():
    store = InMemoryRateLimitStore(limit=100, window_ms=1000)
    assert store.allow("a", limit=1, now_ms=0)
    assert not store.allow("a", limit=1, now_ms=1)


def test_sweep_purges_only_expired_windows():
    store = InMemoryRateLimitStore(limit=5, window_ms=100)
    store.allow("old", now_ms=0)
    store.allow("fresh", now_ms=90)
    assert store.sweep(now_ms=100) == 1
    assert len(store) == 1
    assert store.sweep(now_ms=100) == 0


def test_client_key_prefers_forwarded_for():
    assert client_key(_Req({"x-forwarded-for": "10.0.0.1, 172.16.0.1"}, "127.0.0.1")) == "10.0.0.1"
    assert client_key(_Req({}, "127.0.0.1")) == "127.0.0.1"
    assert client_key(_Req({})) == "unknown"


def test_sweeper_task_runs_and_cancels():
    store = InMemoryRateLimitStore(limit=1, window_ms=1)
    store.allow("x", now_ms=0)

    async def go():
        task = asyncio.create_task(run_sweeper(store, 0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(go())
    assert len(store) == 0


def test_write_endpoint_returns_429(client, employee_headers):
    from orderdesk.main import app

    app.state.rate_limiter = InMemoryRateLimitStore(limit=2, window_ms=60_000)
    body = {"name": "A", "phone": "9990001111"}
    assert client.post("/api/leads", json=body, headers=employee_headers).status_code == 201
    assert client.post("/api/leads", json=body, headers=employee_headers).status_code == 201

    r = client.post("/api/leads", json=body, headers=employee_headers)
    assert r.status_code == 429
    assert r.json()["ok"] is False
    assert r.json()["error"]["msg"] == "Too many requests"

    # reads are not gated
    assert client.get("/api/leads", headers=employee_headers).status_code == 200

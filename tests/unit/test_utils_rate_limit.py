import asyncio
from types import SimpleNamespace

import pytest
from fastapi import FastAPI, Depends, Request
from fastapi.testclient import TestClient

from storefront.utils.rate_limit import (
    CounterStore,
    MemoryCounterStore,
    RedisCounterStore,
    is_rate_limited,
    optional_rate_limit,
    purge_counters_periodically,
    rate_limit_health_info,
)

class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

class BrokenStore(CounterStore):
    backend = "broken"

    async def hit(self, key, window_seconds):
        raise ConnectionError("redis down")

    async def reset(self):
        pass

def _make_app(store=None, times=2, seconds=60):
    app = FastAPI()
    app.state.counter_store = store if store is not None else MemoryCounterStore()

    @app.get("/limited", dependencies=[Depends(optional_rate_limit("a", times, seconds))])
    def limited():
        return {"ok": True}

    @app.get("/other", dependencies=[Depends(optional_rate_limit("b", times, seconds))])
    def other():
        return {"ok": True}

    @app.get("/rl_info")
    def rl_info(request: Request):
        return rate_limit_health_info(request)

    return app

@pytest.mark.asyncio
async def test_memory_store_limit_th_request_passes():
    store = MemoryCounterStore()
    results = [await is_rate_limited(store, "refresh:1.2.3.4", 3, 60) for _ in range(4)]
    assert results == [False, False, False, True]

@pytest.mark.asyncio
async def test_memory_store_window_resets():
    clock = FakeClock()
    store = MemoryCounterStore(clock=clock)
    assert await store.hit("k", 60) == 1
    assert await store.hit("k", 60) == 2
    clock.now += 60
    assert await store.hit("k", 60) == 1

@pytest.mark.asyncio
async def test_memory_store_purge_and_reset():
    clock = FakeClock()
    store = MemoryCounterStore(clock=clock)
    await store.hit("old", 60)
    clock.now += 7200
    await store.hit("new", 60)
    assert store.purge(older_than_seconds=3600) == 1
    assert await store.hit("new", 60) == 2
    await store.reset()
    assert await store.hit("new", 60) == 1

@pytest.mark.asyncio
async def test_redis_store_counts_and_sets_expiry():
    fakeredis = pytest.importorskip("fakeredis")
    r = fakeredis.aioredis.FakeRedis(decode_responses=True)
    store = RedisCounterStore(r)

    assert await store.hit("login:9.9.9.9", 60) == 1
    assert await store.hit("login:9.9.9.9", 60) == 2
    ttl = await r.ttl("rl:login:9.9.9.9")
    assert 0 < ttl <= 60

    await store.reset()
    assert await r.get("rl:login:9.9.9.9") is None
    await r.aclose()

def test_dependency_blocks_after_limit():
    client = TestClient(_make_app(times=2))
    assert client.get("/limited").status_code == 200
    assert client.get("/limited").status_code == 200
    r3 = client.get("/limited")
    assert r3.status_code == 429
    assert r3.json()["detail"] == "Too many requests"

def test_scopes_and_ips_are_independent():
    client = TestClient(_make_app(times=1))
    assert client.get("/limited", headers={"x-forwarded-for": "1.1.1.1"}).status_code == 200
    assert client.get("/limited", headers={"x-forwarded-for": "1.1.1.1"}).status_code == 429
    assert client.get("/limited", headers={"x-forwarded-for": "2.2.2.2, 10.0.0.1"}).status_code == 200
    assert client.get("/other", headers={"x-forwarded-for": "1.1.1.1"}).status_code == 200

def test_failing_store_fails_open(caplog):
    client = TestClient(_make_app(store=BrokenStore(), times=1))
    with caplog.at_level("WARNING"):
        assert client.get("/limited").status_code == 200
        assert client.get("/limited").status_code == 200
    assert any("Rate limiter failed" in r.message for r in caplog.records)

def test_disabled_flag_bypasses_limit():
    app = _make_app(times=1)
    app.state.rate_limit_enabled = False
    client = TestClient(app)
    for _ in range(3):
        assert client.get("/limited").status_code == 200

def test_rate_limit_health_info():
    app = _make_app()
    app.state.rate_limit_enabled = True
    info = TestClient(app).get("/rl_info").json()
    assert info == {"enabled": True, "ready": True, "backend": "memory"}

def test_counter_store_requires_both_methods():
    class HitOnly(CounterStore):
        async def hit(self, key, window_seconds):
            return 1

    with pytest.raises(TypeError):
        HitOnly()

@pytest.mark.asyncio
async def test_redis_store_restores_missing_ttl():
    fakeredis = pytest.importorskip("fakeredis")
    r = fakeredis.aioredis.FakeRedis(decode_responses=True)
    store = RedisCounterStore(r)
    # compteur resté sans TTL (EXPIRE perdu entre deux commandes)
    await r.set("rl:refresh:5.5.5.5", 30)
    assert await r.ttl("rl:refresh:5.5.5.5") == -1

    assert await store.hit("refresh:5.5.5.5", 60) == 31
    ttl = await r.ttl("rl:refresh:5.5.5.5")
    assert 0 < ttl <= 60
    await r.aclose()

@pytest.mark.asyncio
async def test_redis_store_keeps_window_ttl_on_later_hits():
    fakeredis = pytest.importorskip("fakeredis")
    r = fakeredis.aioredis.FakeRedis(decode_responses=True)
    store = RedisCounterStore(r)
    await store.hit("k", 60)
    await r.expire("rl:k", 5)
    await store.hit("k", 60)
    # EXPIRE NX: le TTL de la fenêtre courante n'est pas prolongé
    assert await r.ttl("rl:k") <= 5
    await r.aclose()

@pytest.mark.asyncio
async def test_memory_store_is_bounded_for_spoofed_ips():
    store = MemoryCounterStore(max_entries=100)
    for i in range(500):
        await store.hit(f"refresh:10.0.{i // 256}.{i % 256}", 60)
    assert len(store) == 100
    # la clé courante est toujours conservée
    assert await store.hit("refresh:10.0.1.243", 60) == 2

@pytest.mark.asyncio
async def test_memory_store_drops_expired_windows_first():
    clock = FakeClock()
    store = MemoryCounterStore(clock=clock, max_entries=3)
    await store.hit("a", 10)
    await store.hit("b", 10)
    clock.now += 5
    await store.hit("c", 60)
    clock.now += 10
    await store.hit("d", 60)
    assert len(store) == 2
    assert await store.hit("c", 60) == 2

@pytest.mark.asyncio
async def test_periodic_purge_task():
    clock = FakeClock()
    store = MemoryCounterStore(clock=clock)
    await store.hit("stale", 60)
    clock.now += 7200
    app = SimpleNamespace(state=SimpleNamespace(counter_store=store))

    task = asyncio.create_task(purge_counters_periodically(app, interval_seconds=0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(store) == 0

def test_lifespan_starts_and_cancels_purge_task():
    from storefront.app_setup.factory import create_app

    app = create_app()
    with TestClient(app):
        task = app.state.purge_task
        assert not task.done()
    assert task.cancelled() or task.done()

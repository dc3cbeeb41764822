"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Client HTTP sortant (httpx.AsyncClient) partagé par les vues.
- Compteurs de rate limiting: Redis si RATE_LIMIT_REDIS_URL, sinon mémoire locale.
- Variables d'environnement supportées:
  - RATE_LIMIT_DISABLED=1: désactive complètement le rate limiting
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
- Purge périodique des compteurs mémoire (RATE_LIMIT_PURGE_INTERVAL_SECONDS), tâche annulée à l'arrêt.
"""
import asyncio
import os
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI

from storefront import config
from storefront.infra.http_client import ensure_http_client
from storefront.utils.rate_limit import MemoryCounterStore, RedisCounterStore, purge_counters_periodically

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except ImportError:
    FakeRedis = None

logger = logging.getLogger("uvicorn.error")

async def configure_counter_store(app: FastAPI) -> None:
    """
    Choisit le backend des compteurs.
    - En cas d'échec Redis, on garde le store mémoire (les logs indiquent l'état effectif).
    """
    if os.getenv("RATE_LIMIT_DISABLED") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by RATE_LIMIT_DISABLED")
        return

    app.state.rate_limit_enabled = True
    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            if not FakeRedis:
                raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
            r = FakeRedis(decode_responses=True)
        elif config.RATE_LIMIT_REDIS_URL:
            r = aioredis.from_url(config.RATE_LIMIT_REDIS_URL, encoding="utf-8", decode_responses=True)
        else:
            logger.info("Rate limiting enabled (in-memory counters)")
            return
        await r.ping()
        app.state.counter_store = RedisCounterStore(r)
        logger.info("Rate limiting enabled (redis counters)")
    except Exception as e:
        if not isinstance(getattr(app.state, "counter_store", None), MemoryCounterStore):
            app.state.counter_store = MemoryCounterStore()
        logger.warning(f"Rate limiting falling back to in-memory counters due to init error: {e}")

@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_http_client(app)
    await configure_counter_store(app)
    app.state.purge_task = asyncio.create_task(
        purge_counters_periodically(app, config.RATE_LIMIT_PURGE_INTERVAL_SECONDS)
    )
    try:
        yield
    finally:
        app.state.purge_task.cancel()
        try:
            await app.state.purge_task
        except asyncio.CancelledError:
            pass
        client = getattr(app.state, "http_client", None)
        if client is not None:
            await client.aclose()
        store = getattr(app.state, "counter_store", None)
        if isinstance(store, RedisCounterStore):
            try:
                await store.redis.aclose()
            except Exception as e:
                logger.warning(f"Redis close failed: {e}")

"""
Rate limiting par clé (généralement scope + IP) sur fenêtre fixe.
- Le compteur est injecté via app.state.counter_store (mémoire locale ou Redis).
- Une panne du limiteur n'empêche jamais la requête (fail-open, log warning).
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import asyncio
import logging
import threading
import time

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

class CounterStore(ABC):
    """Interface: `hit` incrémente le compteur de `key` et retourne la valeur dans la fenêtre courante."""

    backend = "none"

    @abstractmethod
    async def hit(self, key: str, window_seconds: int) -> int:
        ...

    @abstractmethod
    async def reset(self) -> None:
        ...

class MemoryCounterStore(CounterStore):
    """
    Compteurs en mémoire du process: {key: (count, first_seen, window)}.
    Non partagé entre instances; suffisant en dev et pour un déploiement mono-worker.
    - Au-delà de max_entries clés, les fenêtres expirées sont supprimées puis, si besoin,
      les plus anciennes (les clés viennent de X-Forwarded-For, donc du client).
    """

    backend = "memory"

    def __init__(self, clock=time.monotonic, max_entries: int = 10000):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, tuple] = {}
        self.max_entries = max_entries

    def __len__(self) -> int:
        return len(self._entries)

    async def hit(self, key: str, window_seconds: int) -> int:
        now = self._clock()
        with self._lock:
            count, first_seen, _ = self._entries.get(key, (0, now, window_seconds))
            if now - first_seen >= window_seconds:
                # fenêtre expirée: on repart de zéro
                count, first_seen = 0, now
            count += 1
            self._entries[key] = (count, first_seen, window_seconds)
            if len(self._entries) > self.max_entries:
                self._evict(now, keep=key)
            return count

    def _evict(self, now: float, keep: str) -> None:
        # appelé sous self._lock
        for k in [k for k, (_, first_seen, window) in self._entries.items() if now - first_seen >= window]:
            del self._entries[k]
        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            oldest = sorted((e[1], k) for k, e in self._entries.items() if k != keep)[:overflow]
            for _, k in oldest:
                del self._entries[k]

    async def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge(self, older_than_seconds: float = 3600) -> int:
        """Supprime les clés inactives depuis older_than_seconds; retourne le nombre supprimé."""
        cutoff = self._clock() - older_than_seconds
        with self._lock:
            stale = [k for k, (_, first_seen, _) in self._entries.items() if first_seen < cutoff]
            for k in stale:
                del self._entries[k]
        return len(stale)

async def purge_counters_periodically(app, interval_seconds: float, older_than_seconds: float = 3600) -> None:
    """Tâche de fond (lifespan): purge régulière du store mémoire courant, jusqu'à annulation."""
    while True:
        await asyncio.sleep(interval_seconds)
        store = getattr(app.state, "counter_store", None)
        if isinstance(store, MemoryCounterStore):
            removed = store.purge(older_than_seconds)
            if removed:
                logger.debug("Rate limit counters purged: %s", removed)

class RedisCounterStore(CounterStore):
    """
    Compteurs partagés: INCR + EXPIRE NX dans une transaction (MULTI/EXEC).
    EXPIRE NX ne pose le TTL que si la clé n'en a pas: une clé restée sans TTL en récupère un.
    """

    backend = "redis"

    def __init__(self, redis_client, prefix: str = "rl:"):
        self.redis = redis_client
        self.prefix = prefix

    async def hit(self, key: str, window_seconds: int) -> int:
        name = f"{self.prefix}{key}"
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(name)
            pipe.expire(name, int(window_seconds), nx=True)
            count, _ = await pipe.execute()
        return int(count)

    async def reset(self) -> None:
        async for name in self.redis.scan_iter(match=f"{self.prefix}*"):
            await self.redis.delete(name)

async def is_rate_limited(store: CounterStore, key: str, limit: int, window_seconds: int) -> bool:
    """True si la requête courante dépasse `limit` hits dans la fenêtre (la limit-ième passe)."""
    return await store.hit(key, window_seconds) > limit

def get_request_ip(request: Request) -> str:
    """IP client: X-Forwarded-For (1re entrée), puis X-Real-IP, puis la socket."""
    forwarded = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"

def get_counter_store(request: Request) -> Optional[CounterStore]:
    return getattr(request.app.state, "counter_store", None)

async def check_rate_limit(request: Request, scope: str, times: int, seconds: int) -> bool:
    """
    Retourne True si la requête doit être rejetée (429).
    - Clé: "<scope>:<ip>".
    - Fail-open: store absent ou en erreur -> False, avec un warning.
    """
    if getattr(request.app.state, "rate_limit_enabled", True) is False:
        return False
    store = get_counter_store(request)
    if store is None:
        logger.warning("Rate limiter unavailable scope=%s: no counter store", scope)
        return False
    key = f"{scope}:{get_request_ip(request)}"
    try:
        return await is_rate_limited(store, key, times, seconds)
    except Exception as e:
        logger.warning("Rate limiter failed scope=%s: %s", scope, e)
        return False

def optional_rate_limit(scope: str, times: int, seconds: int):
    """Dépendance FastAPI: lève HTTPException(429) au-delà de `times` requêtes par `seconds`."""
    async def _dep(request: Request):
        if await check_rate_limit(request, scope, times, seconds):
            raise HTTPException(status_code=429, detail="Too many requests")
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    store = get_counter_store(request)
    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": store is not None,
        "backend": getattr(store, "backend", None),
    }
    if isinstance(store, RedisCounterStore):
        try:
            kwargs = store.redis.connection_pool.connection_kwargs
            info["redis"] = {"host": kwargs.get("host"), "port": kwargs.get("port"), "db": kwargs.get("db")}
        except Exception:
            info["redis"] = None
    return info

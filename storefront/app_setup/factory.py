"""
Factory d'application recommandée pour les entrypoints (ex: storefront.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from typing import Optional

from fastapi import FastAPI

from storefront.metrics import MetricsRecorder, register_metrics_middleware
from storefront.utils.rate_limit import CounterStore, MemoryCounterStore
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app(
    counter_store: Optional[CounterStore] = None,
    metrics: Optional[MetricsRecorder] = None,
) -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - l'état partagé explicite (compteurs de rate limiting, métriques), injectable en tests
      - middlewares de base, sécurité, métriques
      - gestionnaires d'exceptions et routers
    """
    app = FastAPI(title="Storefront checkout service", lifespan=lifespan)
    app.state.counter_store = counter_store or MemoryCounterStore()
    app.state.metrics = metrics or MetricsRecorder()
    app.state.rate_limit_enabled = True
    app.state.http_client = None

    register_basic_middlewares(app)
    register_security_middleware(app)
    register_metrics_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

def register_metrics_middleware(app: FastAPI) -> None:
    """
    Mesure chaque requête et alimente app.state.metrics.
    Les exceptions non gérées comptent comme des erreurs 500 puis sont propagées.
    """
    @app.middleware("http")
    async def collect_metrics(request: Request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            recorder = getattr(request.app.state, "metrics", None)
            if recorder is not None:
                recorder.record(duration_ms, status_code)
            logger.debug("%s %s -> %s (%.1f ms)", request.method, request.url.path, status_code, duration_ms)

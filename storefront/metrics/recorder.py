"""
Accumulateur de métriques du process (requêtes, erreurs, temps de réponse).
Une instance par application (app.state.metrics), remise à zéro au redémarrage.
"""
from typing import Any, Dict
import threading
import time

# module storefront.metrics.recorder
class MetricsRecorder:
    def __init__(self):
        self._lock = threading.Lock()
        self.started_at = time.time()
        self.request_count = 0
        self.error_count = 0
        self.total_response_time_ms = 0.0

    def record(self, duration_ms: float, status_code: int) -> None:
        with self._lock:
            self.request_count += 1
            self.total_response_time_ms += max(0.0, float(duration_ms))
            if status_code >= 400:
                self.error_count += 1

    def reset(self) -> None:
        with self._lock:
            self.request_count = 0
            self.error_count = 0
            self.total_response_time_ms = 0.0

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            count = self.request_count
            errors = self.error_count
            total = self.total_response_time_ms
        return {
            "request_count": count,
            "error_count": errors,
            "total_response_time_ms": round(total, 2),
            "average_response_time_ms": round(total / count) if count else 0,
            "error_rate": f"{(errors / count) * 100:.2f}" if count else "0.00",
            "uptime_seconds": round(time.time() - self.started_at),
        }

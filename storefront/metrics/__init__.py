from .recorder import MetricsRecorder
from .middleware import register_metrics_middleware

__all__ = ["MetricsRecorder", "register_metrics_middleware"]

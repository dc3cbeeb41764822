from datetime import datetime, timezone
import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

import storefront.infra.supabase_client as supabase_client
from storefront.utils.rate_limit import rate_limit_health_info

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])

_STARTED_AT = time.time()

@router.get("")
def health_root():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.time() - _STARTED_AT),
    }

@router.get("/db")
def health_db():
    """Sonde légère: select id sur 'orders' (limit 1) via le client service-role."""
    if not supabase_client.is_configured():
        return JSONResponse(
            {"ok": False, "error": "DB client not configured. Check SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"},
            status_code=503,
        )
    try:
        supabase_client.get_service_supabase().table("orders").select("id").limit(1).execute()
        return {"ok": True}
    except Exception as e:
        logger.error("[health/db] supabase error: %s", e)
        return JSONResponse({"ok": False, "error": str(e)}, status_code=500)

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)

@router.get("/metrics")
def health_metrics(request: Request):
    recorder = getattr(request.app.state, "metrics", None)
    return recorder.snapshot() if recorder is not None else {}

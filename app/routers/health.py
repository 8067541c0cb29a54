# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + audit sink mode + live channel clients.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.config import settings
from app.services.broadcaster import hub
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "audit_ledger": "enabled" if settings.AUDIT_LEDGER_URL else "log-only",
        "token_verification": "signature" if settings.JWT_SECRET else "structural",
        "realtime_clients": len(hub.active_connections),
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result

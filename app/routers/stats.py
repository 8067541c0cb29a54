# app/routers/stats.py
"""State dashboard — aggregate statistics (ETAT only)."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.services.auth_service import Role, require_roles
from app.services.stats_service import compute_stats

router = APIRouter()


@router.get("/stats", dependencies=[Depends(require_roles(Role.ETAT))],
            summary="Registry snapshot, optionally limited to [debut, fin]")
def get_stats(debut: Optional[str] = None, fin: Optional[str] = None, db: Session = Depends(get_db)):
    """
    Counts and revenue recomputed on every call.
    `debut` / `fin` are inclusive ISO dates (YYYY-MM-DD); a malformed or
    missing bound disables the filter.
    """
    return compute_stats(db, debut, fin)

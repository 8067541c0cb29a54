# app/routers/payments.py
"""Read-only view of the payments ledger for the state dashboard."""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.payment import Payment
from app.schemas.payment import PaymentOut
from app.services.auth_service import Role, require_roles

router = APIRouter()


@router.get("/paiements", response_model=list[PaymentOut], dependencies=[Depends(require_roles(Role.ETAT))])
def list_payments(plaque: Optional[str] = None, service: Optional[str] = None, limit: int = 100,
                  db: Session = Depends(get_db)):
    """Newest first. Filter by plate and/or service name."""
    q = db.query(Payment)
    if plaque:
        q = q.filter(Payment.plaque_immatriculation == plaque)
    if service:
        q = q.filter(Payment.service == service)
    return q.order_by(Payment.date_paiement.desc(), Payment.id.desc()).limit(limit).all()

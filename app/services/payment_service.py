# app/services/payment_service.py
"""
Fee collection for paid services (customs entry, carte grise, vignette).
Prices live in the parametres table and are read at the time of the payment.
Callers own the transaction: record_fee() only adds the row.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.parameter import Parameter
from app.models.payment import Payment
from app.utils.logger import get_logger

logger = get_logger(__name__)

SERVICE_DOUANE = "Douane"
SERVICE_CARTE_GRISE = "Carte Grise"
SERVICE_VIGNETTE = "Vignette"

PRICE_DOUANE = "prix_douane"
PRICE_CARTE_GRISE = "prix_carte_grise"
PRICE_VIGNETTE = "prix_vignette"


def get_parameter_value(db: Session, nom: str) -> Optional[int]:
    param = db.query(Parameter).filter(Parameter.nom == nom).first()
    return param.valeur if param else None


def record_fee(db: Session, service: str, price_parameter: str, plaque: str) -> Payment:
    """Add a payment row priced from `price_parameter`. Not committed here."""
    montant = get_parameter_value(db, price_parameter)
    if montant is None:
        logger.warning(f"[PAIEMENT] Parameter '{price_parameter}' not set, recording {service} at 0")
        montant = 0

    payment = Payment(
        service=service,
        montant=montant,
        plaque_immatriculation=plaque,
        date_paiement=datetime.utcnow(),
    )
    db.add(payment)
    logger.info(f"[PAIEMENT] {service} {montant} FCFA for {plaque}")
    return payment

# app/services/stats_service.py
"""
State dashboard statistics (ETAT).

Every call recomputes from live tables, with no caching. An optional period
[debut, fin] (ISO dates, inclusive) scopes vehicles/owners by date_creation
and payments by date_paiement to [debut 00:00, fin+1 day 00:00).
A malformed or half-given period means "no filter", never an error.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from sqlalchemy import and_, exists, func, or_
from sqlalchemy.orm import Session
from app.models.owner import Owner
from app.models.payment import Payment
from app.models.statuses import DocumentStatus, FLAGGED_POLICE_STATUSES
from app.models.vehicle import Vehicle
from app.services import payment_service
from app.utils.logger import get_logger

logger = get_logger(__name__)

VALIDE = DocumentStatus.VALIDE.value
EXPIRE = DocumentStatus.EXPIRE.value

# Output key → vehicules column
DOCUMENT_COLUMNS = {
    "carteGrise": Vehicle.statut_carte_grise,
    "assurance": Vehicle.statut_assurance,
    "vignette": Vehicle.statut_vignette,
    "visiteTechnique": Vehicle.statut_visite_technique,
}

# Output key → payment service name
REVENUE_SERVICES = {
    "douane": payment_service.SERVICE_DOUANE,
    "mairie_vignettes": payment_service.SERVICE_VIGNETTE,
    "ont_cartes_grises": payment_service.SERVICE_CARTE_GRISE,
}


def parse_period(debut: Optional[str], fin: Optional[str]) -> Optional[Tuple[datetime, datetime]]:
    """Return (start, end_exclusive) when both bounds are valid ISO dates, else None."""
    if not debut or not fin:
        return None
    try:
        start = date.fromisoformat(debut.strip())
        end = date.fromisoformat(fin.strip())
    except ValueError:
        logger.info(f"[STATS] Ignoring malformed period debut={debut!r} fin={fin!r}")
        return None
    return datetime.combine(start, datetime.min.time()), datetime.combine(end + timedelta(days=1), datetime.min.time())


def _compliant_vehicle_condition():
    # "À jour": insurance, sticker and technical inspection all valid
    return and_(
        Vehicle.statut_assurance == VALIDE,
        Vehicle.statut_vignette == VALIDE,
        Vehicle.statut_visite_technique == VALIDE,
    )


def compute_stats(db: Session, debut: Optional[str] = None, fin: Optional[str] = None) -> dict:
    period = parse_period(debut, fin)

    def vehicles(*conditions):
        q = db.query(func.count(Vehicle.plaque_immatriculation))
        if period:
            q = q.filter(Vehicle.date_creation >= period[0], Vehicle.date_creation < period[1])
        return q.filter(*conditions).scalar() or 0

    owners_q = db.query(func.count(Owner.id))
    if period:
        owners_q = owners_q.filter(Owner.date_creation >= period[0], Owner.date_creation < period[1])
    total_owners = owners_q.scalar() or 0

    # Owners with no vehicle falling short on any of the three documents
    non_compliant = exists().where(
        Vehicle.proprietaire_id == Owner.id,
        or_(
            Vehicle.statut_assurance != VALIDE,
            Vehicle.statut_vignette != VALIDE,
            Vehicle.statut_visite_technique != VALIDE,
        ),
    )
    compliant_owners = owners_q.filter(~non_compliant).scalar() or 0

    def revenue(service: str) -> int:
        q = db.query(func.coalesce(func.sum(Payment.montant), 0)).filter(Payment.service == service)
        if period:
            q = q.filter(Payment.date_paiement >= period[0], Payment.date_paiement < period[1])
        return int(q.scalar() or 0)

    revenus = {key: revenue(service) for key, service in REVENUE_SERVICES.items()}
    revenus["total"] = sum(revenus.values())

    return {
        "totalVehicules": vehicles(),
        "totalProprietaires": total_owners,
        "vehiculesAJour": vehicles(_compliant_vehicle_condition()),
        "citoyensAJour": compliant_owners,
        "vehiculesSignales": vehicles(Vehicle.statut_police.in_(FLAGGED_POLICE_STATUSES)),
        "conformiteDocuments": {key: vehicles(col == VALIDE) for key, col in DOCUMENT_COLUMNS.items()},
        "documentsExpires": {key: vehicles(col == EXPIRE) for key, col in DOCUMENT_COLUMNS.items()},
        "revenus": revenus,
        "periode": {"debut": debut, "fin": fin} if period else None,
    }

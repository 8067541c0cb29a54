# app/services/vehicle_service.py
"""
Vehicle registry operations and the shared agency update pipeline.

Every mutation follows the same order:
  1. write the row (plus the fee payment, same commit)
  2. broadcast `vehicle_updated` to connected dashboards
  3. schedule the audit ledger entry (fire-and-forget)
Broadcast and audit never fail the request.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.owner import Owner
from app.models.statuses import DocumentStatus, PoliceStatus
from app.models.vehicle import Vehicle
from app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleOut
from app.services import payment_service
from app.services.audit_service import record_action
from app.services.broadcaster import notify_vehicle_updated, notify_fleeing_vehicle
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ComplianceDocument:
    column: str                 # status column on vehicules
    label: str                  # used in response messages
    agency: str                 # log tag
    audit_tag: str
    fee_service: Optional[str] = None
    fee_parameter: Optional[str] = None


CARTE_GRISE = ComplianceDocument(
    "statut_carte_grise", "de la carte grise", "ONT", "CARTE_GRISE_UPDATE",
    payment_service.SERVICE_CARTE_GRISE, payment_service.PRICE_CARTE_GRISE,
)
ASSURANCE = ComplianceDocument(
    "statut_assurance", "de l'assurance", "ASSURANCE", "ASSURANCE_UPDATE",
)
VIGNETTE = ComplianceDocument(
    "statut_vignette", "de la vignette", "MAIRIE", "VIGNETTE_UPDATE",
    payment_service.SERVICE_VIGNETTE, payment_service.PRICE_VIGNETTE,
)
VISITE_TECHNIQUE = ComplianceDocument(
    "statut_visite_technique", "de la visite technique", "MTS", "VISITE_TECHNIQUE_UPDATE",
)


def lookup_vehicle_by_plate(db: Session, plaque: str, for_update: bool = False) -> Optional[Vehicle]:
    """
    Find a vehicle by plate. Returns None if not found.
    With for_update, the row stays locked (SELECT ... FOR UPDATE) until the
    session commits.
    """
    q = db.query(Vehicle).filter(Vehicle.plaque_immatriculation == plaque)
    if for_update:
        q = q.with_for_update()
    return q.first()


def is_registered(db: Session, plaque: str) -> bool:
    """Check if a plate is already in the registry."""
    return lookup_vehicle_by_plate(db, plaque) is not None


def is_chassis_registered(db: Session, numero_chassis: str) -> bool:
    return db.query(Vehicle).filter(Vehicle.numero_chassis == numero_chassis).first() is not None


def get_vehicle_with_owner(db: Session, plaque: str) -> Optional[dict]:
    """Vehicle row left-joined with its owner, flattened as proprietaire_* keys."""
    row = (
        db.query(Vehicle, Owner)
        .outerjoin(Owner, Vehicle.proprietaire_id == Owner.id)
        .filter(Vehicle.plaque_immatriculation == plaque)
        .first()
    )
    if row is None:
        return None

    vehicle, owner = row
    data = VehicleOut.model_validate(vehicle).model_dump()
    data.update({
        "proprietaire_nom": owner.nom if owner else None,
        "proprietaire_prenom": owner.prenom if owner else None,
        "proprietaire_adresse": owner.adresse if owner else None,
        "proprietaire_telephone": owner.telephone if owner else None,
        "proprietaire_type_piece_identite": owner.type_piece_identite if owner else None,
        "proprietaire_numero_piece_identite": owner.numero_piece_identite if owner else None,
        "proprietaire_date_expiration_piece": owner.date_expiration_piece if owner else None,
    })
    return data


def list_vehicles(db: Session) -> list[Vehicle]:
    return db.query(Vehicle).order_by(Vehicle.date_creation.desc()).all()


async def _after_mutation(plaque: str, audit_message: str):
    await notify_vehicle_updated(plaque)
    record_action(audit_message)


async def create_vehicle(db: Session, body: VehicleCreate) -> Vehicle:
    """Register an imported vehicle and collect the customs fee."""
    now = datetime.utcnow()
    vehicle = Vehicle(
        plaque_immatriculation=body.plaque_immatriculation,
        marque=body.marque,
        modele=body.modele,
        annee=body.annee,
        couleur=body.couleur,
        numero_chassis=body.numero_chassis,
        proprietaire_id=body.proprietaire_id,
        statut_carte_grise=DocumentStatus.MANQUANT.value,
        statut_assurance=DocumentStatus.MANQUANT.value,
        statut_vignette=DocumentStatus.MANQUANT.value,
        statut_visite_technique=DocumentStatus.MANQUANT.value,
        statut_police=PoliceStatus.NORMAL.value,
        statut_general="NORMAL",
        date_creation=now,
        date_modification=now,
    )
    db.add(vehicle)
    payment_service.record_fee(
        db, payment_service.SERVICE_DOUANE, payment_service.PRICE_DOUANE, body.plaque_immatriculation,
    )
    db.commit()
    db.refresh(vehicle)
    logger.info(f"[DOUANE] Vehicle {vehicle.plaque_immatriculation} registered ({vehicle.marque} {vehicle.modele})")

    await _after_mutation(
        vehicle.plaque_immatriculation,
        f"VEHICULE_CREE: Plaque={vehicle.plaque_immatriculation}, Marque={vehicle.marque}",
    )
    return vehicle


async def update_vehicle(db: Session, plaque: str, body: VehicleUpdate) -> Optional[Vehicle]:
    vehicle = lookup_vehicle_by_plate(db, plaque)
    if not vehicle:
        return None

    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(vehicle, key, value)
    vehicle.date_modification = datetime.utcnow()
    db.commit()
    db.refresh(vehicle)
    logger.info(f"[VEHICULE] {plaque} general fields updated")

    await _after_mutation(plaque, f"VEHICULE_UPDATE: Plaque={plaque}")
    return vehicle


async def delete_vehicle(db: Session, plaque: str) -> Optional[dict]:
    """Delete a vehicle. Returns the deleted row as a dict, or None if unknown."""
    vehicle = lookup_vehicle_by_plate(db, plaque)
    if not vehicle:
        return None

    snapshot = VehicleOut.model_validate(vehicle).model_dump()
    db.delete(vehicle)
    db.commit()
    logger.info(f"[VEHICULE] {plaque} deleted")

    await _after_mutation(plaque, f"VEHICULE_SUPPRIME: Plaque={plaque}")
    return snapshot


async def update_compliance_status(
    db: Session,
    plaque: str,
    document: ComplianceDocument,
    nouveau_statut: DocumentStatus,
    notes: Optional[str] = None,
) -> Optional[Vehicle]:
    """
    Set one agency-owned document status.
    A fee-bearing document moving to VALIDE from any other status is charged
    once; re-submitting VALIDE on an already valid document is not charged again.
    The row is locked while the previous status is read, so concurrent
    validations of the same document charge only once.
    """
    vehicle = lookup_vehicle_by_plate(db, plaque, for_update=True)
    if not vehicle:
        return None

    previous = getattr(vehicle, document.column)
    setattr(vehicle, document.column, nouveau_statut.value)
    vehicle.date_modification = datetime.utcnow()

    if (document.fee_service
            and nouveau_statut == DocumentStatus.VALIDE
            and previous != DocumentStatus.VALIDE.value):
        payment_service.record_fee(db, document.fee_service, document.fee_parameter, plaque)

    db.commit()
    db.refresh(vehicle)
    logger.info(f"[{document.agency}] {plaque} {document.column}: {previous} → {nouveau_statut.value}")

    audit = f"{document.audit_tag}: Plaque={plaque}, Statut={nouveau_statut.value}"
    if notes:
        audit += f", Notes={notes}"
    await _after_mutation(plaque, audit)
    return vehicle


async def update_police_status(
    db: Session,
    plaque: str,
    nouveau_statut: PoliceStatus,
    notes: Optional[str] = None,
) -> Optional[Vehicle]:
    """Set the police flag. Flagging a vehicle EN FUITE raises a live alert."""
    vehicle = lookup_vehicle_by_plate(db, plaque)
    if not vehicle:
        return None

    previous = vehicle.statut_police
    vehicle.statut_police = nouveau_statut.value
    vehicle.date_modification = datetime.utcnow()
    db.commit()
    db.refresh(vehicle)
    logger.info(f"[POLICE] {plaque} statut_police: {previous} → {nouveau_statut.value}")

    await notify_vehicle_updated(plaque)
    if nouveau_statut == PoliceStatus.EN_FUITE:
        await notify_fleeing_vehicle(plaque)

    audit = f"STATUT_POLICE_UPDATE: Plaque={plaque}, Statut={nouveau_statut.value}"
    if notes:
        audit += f", Notes={notes}"
    record_action(audit)
    return vehicle

# app/services/owner_service.py
"""Owner (proprietaire) CRUD helpers. Owners are not broadcast on the live channel."""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.owner import Owner
from app.models.vehicle import Vehicle
from app.schemas.owner import OwnerCreate, OwnerUpdate, OwnerOut
from app.services.audit_service import record_action
from app.utils.logger import get_logger

logger = get_logger(__name__)


def get_owner(db: Session, owner_id: int) -> Optional[Owner]:
    return db.query(Owner).filter(Owner.id == owner_id).first()


def list_owners(db: Session) -> list[Owner]:
    return db.query(Owner).order_by(Owner.nom, Owner.prenom).all()


def create_owner(db: Session, body: OwnerCreate) -> Owner:
    owner = Owner(**body.model_dump(), date_creation=datetime.utcnow())
    db.add(owner)
    db.commit()
    db.refresh(owner)
    logger.info(f"[PROPRIETAIRE] Created {owner.id} ({owner.prenom} {owner.nom})")
    record_action(f"PROPRIETAIRE_CREE: Id={owner.id}, Nom={owner.nom}")
    return owner


def update_owner(db: Session, owner_id: int, body: OwnerUpdate) -> Optional[Owner]:
    owner = get_owner(db, owner_id)
    if not owner:
        return None
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(owner, key, value)
    db.commit()
    db.refresh(owner)
    record_action(f"PROPRIETAIRE_UPDATE: Id={owner_id}")
    return owner


def delete_owner(db: Session, owner_id: int) -> Optional[dict]:
    """
    Delete an owner. Vehicles that pointed at it are detached (proprietaire_id
    set to NULL) in the same commit rather than blocking the deletion.
    """
    owner = get_owner(db, owner_id)
    if not owner:
        return None

    snapshot = OwnerOut.model_validate(owner).model_dump()
    detached = (
        db.query(Vehicle)
        .filter(Vehicle.proprietaire_id == owner_id)
        .update({Vehicle.proprietaire_id: None}, synchronize_session=False)
    )
    db.delete(owner)
    db.commit()
    if detached:
        logger.info(f"[PROPRIETAIRE] {owner_id} deleted, {detached} vehicle(s) detached")
    record_action(f"PROPRIETAIRE_SUPPRIME: Id={owner_id}")
    return snapshot

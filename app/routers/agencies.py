# app/routers/agencies.py
"""
Agency status routes. Each agency writes only the column it owns.
  ONT        → carte grise       (fee on VALIDE)
  ASSURANCE  → assurance
  MAIRIE     → vignette          (fee on VALIDE)
  MTS        → visite technique
  POLICE     → statut police     (live alert on EN FUITE)
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.vehicle import DocumentStatusUpdate, PoliceStatusUpdate, VehicleMutationOut
from app.services import vehicle_service
from app.services.auth_service import Role, require_roles
from app.services.vehicle_service import (
    ComplianceDocument, CARTE_GRISE, ASSURANCE, VIGNETTE, VISITE_TECHNIQUE,
)

router = APIRouter()


async def _apply(db: Session, plaque: str, document: ComplianceDocument, body: DocumentStatusUpdate) -> dict:
    vehicle = await vehicle_service.update_compliance_status(
        db, plaque, document, body.nouveau_statut, body.notes,
    )
    if not vehicle:
        raise HTTPException(status_code=404, detail="Véhicule non trouvé")
    return {
        "message": f"Statut {document.label} mis à jour à '{body.nouveau_statut.value}'",
        "vehicule": vehicle_service.get_vehicle_with_owner(db, plaque),
    }


@router.put("/ont/vehicules/{plaque}/carte-grise", response_model=VehicleMutationOut,
            dependencies=[Depends(require_roles(Role.ONT))], summary="ONT — carte grise status")
async def update_carte_grise(plaque: str, body: DocumentStatusUpdate, db: Session = Depends(get_db)):
    return await _apply(db, plaque, CARTE_GRISE, body)


@router.put("/assurance/vehicules/{plaque}/statut", response_model=VehicleMutationOut,
            dependencies=[Depends(require_roles(Role.ASSURANCE))], summary="Assurance — insurance status")
async def update_assurance(plaque: str, body: DocumentStatusUpdate, db: Session = Depends(get_db)):
    return await _apply(db, plaque, ASSURANCE, body)


@router.put("/mairie/vehicules/{plaque}/vignette", response_model=VehicleMutationOut,
            dependencies=[Depends(require_roles(Role.MAIRIE))], summary="Mairie — vignette status")
async def update_vignette(plaque: str, body: DocumentStatusUpdate, db: Session = Depends(get_db)):
    return await _apply(db, plaque, VIGNETTE, body)


@router.put("/mts/vehicules/{plaque}/visite-technique", response_model=VehicleMutationOut,
            dependencies=[Depends(require_roles(Role.MTS))], summary="MTS — technical inspection status")
async def update_visite_technique(plaque: str, body: DocumentStatusUpdate, db: Session = Depends(get_db)):
    return await _apply(db, plaque, VISITE_TECHNIQUE, body)


@router.put("/police/vehicules/{plaque}/statut-police", response_model=VehicleMutationOut,
            dependencies=[Depends(require_roles(Role.POLICE))], summary="Police — police status")
async def update_statut_police(plaque: str, body: PoliceStatusUpdate, db: Session = Depends(get_db)):
    vehicle = await vehicle_service.update_police_status(db, plaque, body.nouveau_statut, body.notes)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Véhicule non trouvé")
    return {
        "message": f"Statut police mis à jour à '{body.nouveau_statut.value}'",
        "vehicule": vehicle_service.get_vehicle_with_owner(db, plaque),
    }

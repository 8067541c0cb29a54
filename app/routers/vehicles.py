# app/routers/vehicles.py
"""Vehicle registry CRUD. Creation belongs to customs (DOUANE); reads are open."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleOut, VehicleDetailOut, VehicleMutationOut,
)
from app.services import owner_service, vehicle_service
from app.services.auth_service import Role, require_roles, require_authenticated

router = APIRouter()


@router.post("/vehicules", response_model=VehicleOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_roles(Role.DOUANE))],
             summary="Register an imported vehicle (records the customs fee)")
async def create_vehicle(body: VehicleCreate, db: Session = Depends(get_db)):
    if vehicle_service.is_registered(db, body.plaque_immatriculation):
        raise HTTPException(status_code=400, detail=f"Plaque {body.plaque_immatriculation} déjà enregistrée")
    if body.numero_chassis and vehicle_service.is_chassis_registered(db, body.numero_chassis):
        raise HTTPException(status_code=400, detail=f"Numéro de châssis {body.numero_chassis} déjà enregistré")
    if body.proprietaire_id is not None and not owner_service.get_owner(db, body.proprietaire_id):
        raise HTTPException(status_code=404, detail="Propriétaire non trouvé")
    return await vehicle_service.create_vehicle(db, body)


@router.get("/vehicules", response_model=list[VehicleOut], summary="List all vehicles, newest first")
def list_vehicles(db: Session = Depends(get_db)):
    return vehicle_service.list_vehicles(db)


@router.get("/vehicules/{plaque}", response_model=VehicleDetailOut, summary="Vehicle with owner details")
def get_vehicle(plaque: str, db: Session = Depends(get_db)):
    vehicle = vehicle_service.get_vehicle_with_owner(db, plaque)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Véhicule non trouvé")
    return vehicle


@router.put("/vehicules/{plaque}", response_model=VehicleMutationOut,
            dependencies=[Depends(require_authenticated)],
            summary="Update general fields (colour, general status, owner link)")
async def update_vehicle(plaque: str, body: VehicleUpdate, db: Session = Depends(get_db)):
    if body.proprietaire_id is not None and not owner_service.get_owner(db, body.proprietaire_id):
        raise HTTPException(status_code=404, detail="Propriétaire non trouvé")
    vehicle = await vehicle_service.update_vehicle(db, plaque, body)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Impossible de mettre à jour : Véhicule non trouvé")
    return {"message": "Véhicule mis à jour avec succès",
            "vehicule": vehicle_service.get_vehicle_with_owner(db, plaque)}


@router.delete("/vehicules/{plaque}", dependencies=[Depends(require_authenticated)],
               summary="Delete a vehicle")
async def delete_vehicle(plaque: str, db: Session = Depends(get_db)):
    deleted = await vehicle_service.delete_vehicle(db, plaque)
    if not deleted:
        raise HTTPException(status_code=404, detail="Impossible de supprimer : Véhicule non trouvé")
    return {"message": "Véhicule supprimé avec succès", "vehicule": deleted}

# app/routers/owners.py
"""Owner (proprietaire) CRUD."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.owner import OwnerCreate, OwnerUpdate, OwnerOut, OwnerMutationOut
from app.services import owner_service
from app.services.auth_service import Role, require_roles, require_authenticated

router = APIRouter()


@router.post("/proprietaires", response_model=OwnerOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_roles(Role.DOUANE))], summary="Create an owner")
async def create_owner(body: OwnerCreate, db: Session = Depends(get_db)):
    return owner_service.create_owner(db, body)


@router.get("/proprietaires", response_model=list[OwnerOut], summary="List owners by name")
def list_owners(db: Session = Depends(get_db)):
    return owner_service.list_owners(db)


@router.get("/proprietaires/{owner_id}", response_model=OwnerOut)
def get_owner(owner_id: int, db: Session = Depends(get_db)):
    owner = owner_service.get_owner(db, owner_id)
    if not owner:
        raise HTTPException(status_code=404, detail="Propriétaire non trouvé")
    return owner


@router.put("/proprietaires/{owner_id}", response_model=OwnerMutationOut,
            dependencies=[Depends(require_authenticated)], summary="Update contact / identity fields")
async def update_owner(owner_id: int, body: OwnerUpdate, db: Session = Depends(get_db)):
    owner = owner_service.update_owner(db, owner_id, body)
    if not owner:
        raise HTTPException(status_code=404, detail="Impossible de mettre à jour : Propriétaire non trouvé")
    return {"message": "Propriétaire mis à jour", "data": owner}


@router.delete("/proprietaires/{owner_id}", response_model=OwnerMutationOut,
               dependencies=[Depends(require_authenticated)], summary="Delete an owner")
async def delete_owner(owner_id: int, db: Session = Depends(get_db)):
    deleted = owner_service.delete_owner(db, owner_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Impossible de supprimer : Propriétaire non trouvé")
    return {"message": "Propriétaire supprimé", "data": deleted}

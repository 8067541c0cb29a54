# app/routers/parameters.py
"""Service prices and other parameters. Everyone authenticated reads; only ETAT writes."""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.parameter import Parameter
from app.schemas.parameter import ParameterOut, ParameterUpdate
from app.services.audit_service import record_action
from app.services.auth_service import Role, require_roles, require_authenticated
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/parametres", response_model=list[ParameterOut], dependencies=[Depends(require_authenticated)])
def list_parameters(db: Session = Depends(get_db)):
    return db.query(Parameter).order_by(Parameter.nom).all()


@router.put("/parametres/{nom}", response_model=ParameterOut,
            dependencies=[Depends(require_roles(Role.ETAT))], summary="Update a parameter value")
async def update_parameter(nom: str, body: ParameterUpdate, db: Session = Depends(get_db)):
    """Parameters are seeded out-of-band; unknown names are not created here."""
    param = db.query(Parameter).filter(Parameter.nom == nom).first()
    if not param:
        raise HTTPException(status_code=404, detail=f"Paramètre '{nom}' non trouvé")
    previous = param.valeur
    param.valeur = body.valeur
    param.date_modification = datetime.utcnow()
    db.commit()
    db.refresh(param)
    logger.info(f"[ETAT] Parameter {nom}: {previous} → {body.valeur}")
    record_action(f"PARAMETRE_UPDATE: Nom={nom}, Valeur={body.valeur}")
    return param

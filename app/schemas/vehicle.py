# app/schemas/vehicle.py
import re
from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Optional
from app.config import settings
from app.models.statuses import DocumentStatus, PoliceStatus

# re.ASCII keeps \d to 0-9; callers use fullmatch() so a trailing newline fails
_PLATE_RE = re.compile(settings.PLATE_PATTERN, re.ASCII)


class VehicleCreate(BaseModel):
    plaque_immatriculation: str
    marque: str
    modele: str
    annee: Optional[int] = None
    couleur: Optional[str] = None
    numero_chassis: Optional[str] = None
    proprietaire_id: Optional[int] = None

    @field_validator("plaque_immatriculation")
    @classmethod
    def check_plate_format(cls, v: str) -> str:
        if not _PLATE_RE.fullmatch(v):
            raise ValueError("Format de plaque invalide (attendu : AA-1234-AA)")
        return v


class VehicleUpdate(BaseModel):
    """General fields only; compliance statuses go through the agency routes."""
    couleur: Optional[str] = None
    statut_general: Optional[str] = None
    proprietaire_id: Optional[int] = None
    marque: Optional[str] = None
    modele: Optional[str] = None
    annee: Optional[int] = None

    @field_validator("marque", "modele")
    @classmethod
    def not_null(cls, v: Optional[str]) -> str:
        # Omit the field to keep the current value; null is not a value
        if v is None:
            raise ValueError("ne peut pas être nul")
        return v


class DocumentStatusUpdate(BaseModel):
    nouveau_statut: DocumentStatus
    notes: Optional[str] = None


class PoliceStatusUpdate(BaseModel):
    nouveau_statut: PoliceStatus
    notes: Optional[str] = None


class VehicleOut(BaseModel):
    plaque_immatriculation: str
    marque: str
    modele: str
    annee: Optional[int]
    couleur: Optional[str]
    numero_chassis: Optional[str]
    statut_carte_grise: str
    statut_assurance: str
    statut_vignette: str
    statut_visite_technique: str
    statut_police: str
    statut_general: Optional[str]
    proprietaire_id: Optional[int]
    date_creation: Optional[datetime]
    date_modification: Optional[datetime]

    class Config:
        from_attributes = True


class VehicleDetailOut(VehicleOut):
    """Vehicle joined with its owner's identity (all owner fields null when unlinked)."""
    proprietaire_nom: Optional[str] = None
    proprietaire_prenom: Optional[str] = None
    proprietaire_adresse: Optional[str] = None
    proprietaire_telephone: Optional[str] = None
    proprietaire_type_piece_identite: Optional[str] = None
    proprietaire_numero_piece_identite: Optional[str] = None
    proprietaire_date_expiration_piece: Optional[date] = None


class VehicleMutationOut(BaseModel):
    message: str
    vehicule: VehicleDetailOut

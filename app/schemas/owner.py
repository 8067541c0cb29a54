# app/schemas/owner.py
from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional


class OwnerCreate(BaseModel):
    nom: str
    prenom: str
    date_naissance: Optional[date] = None
    adresse: Optional[str] = None
    telephone: Optional[str] = None
    email: Optional[str] = None
    type_piece_identite: Optional[str] = None
    numero_piece_identite: Optional[str] = None
    date_expiration_piece: Optional[date] = None


class OwnerUpdate(BaseModel):
    adresse: Optional[str] = None
    telephone: Optional[str] = None
    email: Optional[str] = None
    type_piece_identite: Optional[str] = None
    numero_piece_identite: Optional[str] = None
    date_expiration_piece: Optional[date] = None


class OwnerOut(BaseModel):
    id: int
    nom: str
    prenom: str
    date_naissance: Optional[date]
    adresse: Optional[str]
    telephone: Optional[str]
    email: Optional[str]
    type_piece_identite: Optional[str]
    numero_piece_identite: Optional[str]
    date_expiration_piece: Optional[date]
    date_creation: Optional[datetime]

    class Config:
        from_attributes = True


class OwnerMutationOut(BaseModel):
    message: str
    data: OwnerOut

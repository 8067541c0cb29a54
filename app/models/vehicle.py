# app/models/vehicle.py
"""
Vehicles table — one row per plate.
Each compliance column is owned by one agency (ONT, assurance, mairie, MTS, police)
and only ever written through that agency's route.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.database import Base
from app.models.statuses import DocumentStatus, PoliceStatus


class Vehicle(Base):
    __tablename__ = "vehicules"

    plaque_immatriculation = Column(String(10), primary_key=True)    # AA-9999-AA
    marque = Column(String(100), nullable=False)
    modele = Column(String(100), nullable=False)
    annee = Column(Integer)
    couleur = Column(String(50))
    numero_chassis = Column(String(50), unique=True)

    statut_carte_grise = Column(String(20), nullable=False, default=DocumentStatus.MANQUANT.value)
    statut_assurance = Column(String(20), nullable=False, default=DocumentStatus.MANQUANT.value)
    statut_vignette = Column(String(20), nullable=False, default=DocumentStatus.MANQUANT.value)
    statut_visite_technique = Column(String(20), nullable=False, default=DocumentStatus.MANQUANT.value)
    statut_police = Column(String(20), nullable=False, default=PoliceStatus.NORMAL.value, index=True)
    statut_general = Column(String(50), default="NORMAL")

    proprietaire_id = Column(Integer, ForeignKey("proprietaires.id", ondelete="SET NULL"), index=True)

    date_creation = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    date_modification = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<Vehicle {self.plaque_immatriculation} police={self.statut_police}>"

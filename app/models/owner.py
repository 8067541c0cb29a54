# app/models/owner.py
"""
Owners table (proprietaires).
Created independently of vehicles; a vehicle points at its owner through
vehicules.proprietaire_id.
"""

from sqlalchemy import Column, Integer, String, Date, DateTime, Text
from sqlalchemy.sql import func
from app.database import Base


class Owner(Base):
    __tablename__ = "proprietaires"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nom = Column(String(100), nullable=False, index=True)
    prenom = Column(String(100), nullable=False)
    date_naissance = Column(Date)
    adresse = Column(Text)
    telephone = Column(String(30))
    email = Column(String(200))
    type_piece_identite = Column(String(50))       # CNI | PASSEPORT | ...
    numero_piece_identite = Column(String(50))
    date_expiration_piece = Column(Date)
    date_creation = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Owner {self.id} {self.prenom} {self.nom}>"

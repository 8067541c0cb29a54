# app/models/parameter.py
"""
Configuration parameters (parametres), e.g. the price of each paid service.
Seeded by scripts/setup/init_db.py, then only updated in place by the ETAT role.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from app.database import Base


class Parameter(Base):
    __tablename__ = "parametres"

    nom = Column(String(100), primary_key=True)    # prix_douane | prix_carte_grise | prix_vignette
    valeur = Column(Integer, nullable=False)
    description = Column(Text)
    date_modification = Column(DateTime)

    def __repr__(self):
        return f"<Parameter {self.nom}={self.valeur}>"

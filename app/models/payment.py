# app/models/payment.py
"""
Payments ledger (paiements). Append-only: rows are inserted as a side effect
of fee-bearing validations and never updated or deleted through the API.
The plate is stored as plain text so the ledger outlives deleted vehicles.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from app.database import Base


class Payment(Base):
    __tablename__ = "paiements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service = Column(String(50), nullable=False, index=True)   # Douane | Carte Grise | Vignette
    montant = Column(Integer, nullable=False)                   # FCFA
    plaque_immatriculation = Column(String(10), nullable=False, index=True)
    date_paiement = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Payment {self.id} {self.service} {self.montant} plate={self.plaque_immatriculation}>"

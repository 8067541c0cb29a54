# app/schemas/payment.py
from pydantic import BaseModel
from datetime import datetime


class PaymentOut(BaseModel):
    id: int
    service: str
    montant: int
    plaque_immatriculation: str
    date_paiement: datetime

    class Config:
        from_attributes = True

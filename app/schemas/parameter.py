# app/schemas/parameter.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class ParameterOut(BaseModel):
    nom: str
    valeur: int
    description: Optional[str]
    date_modification: Optional[datetime]

    class Config:
        from_attributes = True


class ParameterUpdate(BaseModel):
    valeur: int = Field(ge=0)

# app/models/statuses.py
"""
Status enumerations shared by the vehicles table, request schemas and services.
Values are stored verbatim in the status columns.
"""

import enum


class DocumentStatus(str, enum.Enum):
    """Status of one compliance document (carte grise, assurance, vignette, visite technique)."""
    MANQUANT = "MANQUANT"
    VALIDE = "VALIDE"
    EXPIRE = "EXPIRÉ"


class PoliceStatus(str, enum.Enum):
    """Police flag on a vehicle. Only the POLICE role may change it."""
    NORMAL = "NORMAL"
    VOLE = "VOLÉ"
    EN_FUITE = "EN FUITE"
    INTERCEPTE = "INTERCEPTÉ"


# Police statuses counted as "flagged" on the state dashboard
FLAGGED_POLICE_STATUSES = (PoliceStatus.VOLE.value, PoliceStatus.EN_FUITE.value)

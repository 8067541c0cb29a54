# tests/conftest.py
"""
Shared fixtures. The app runs on an in-memory SQLite database; the
environment is set before any `app.*` import so Settings picks it up.
"""

import sys
import os
import tempfile
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="siu-test-logs-")
os.environ.pop("JWT_SECRET", None)
os.environ.pop("AUDIT_LEDGER_URL", None)

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import jwt
import pytest

from app.database import Base, SessionLocal, engine
import app.models  # noqa: F401  (registers every table on Base.metadata)
from app.models.parameter import Parameter

TEST_SIGNING_KEY = "siu-test-signing-key-0123456789abcdef"


def make_token(*roles, username="agent-test", key=TEST_SIGNING_KEY):
    return jwt.encode({"cognito:username": username, "cognito:groups": list(roles)}, key, algorithm="HS256")


def auth(*roles):
    return {"Authorization": f"Bearer {make_token(*roles)}"}


@pytest.fixture
def db():
    """Fresh schema per test; yields a session for seeding and assertions."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def prices(db):
    now = datetime.utcnow()
    db.add_all([
        Parameter(nom="prix_douane", valeur=5000, date_modification=now),
        Parameter(nom="prix_carte_grise", valeur=25000, date_modification=now),
        Parameter(nom="prix_vignette", valeur=15000, date_modification=now),
    ])
    db.commit()


@pytest.fixture
def side_effects():
    """Capture broadcasts and audit entries instead of sending them."""
    with patch("app.services.vehicle_service.notify_vehicle_updated", new_callable=AsyncMock) as updated, \
         patch("app.services.vehicle_service.notify_fleeing_vehicle", new_callable=AsyncMock) as fleeing, \
         patch("app.services.vehicle_service.record_action", new_callable=MagicMock) as audit, \
         patch("app.services.owner_service.record_action", new_callable=MagicMock) as owner_audit, \
         patch("app.routers.parameters.record_action", new_callable=MagicMock) as param_audit:
        yield SimpleNamespace(updated=updated, fleeing=fleeing, audit=audit,
                              owner_audit=owner_audit, param_audit=param_audit)


@pytest.fixture
def client(db, side_effects):
    from fastapi.testclient import TestClient
    from app.main import app
    with TestClient(app) as c:
        yield c

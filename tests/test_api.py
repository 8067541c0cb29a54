# tests/test_api.py
"""End-to-end route tests: role guard, validation, fees, broadcasts, stats."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime
from unittest.mock import patch
import pytest
from sqlalchemy.exc import OperationalError
from app.database import SessionLocal
from app.models.owner import Owner
from app.models.parameter import Parameter
from app.models.payment import Payment
from app.models.vehicle import Vehicle
from conftest import auth

PLATE = "AB-1234-CD"

NEW_VEHICLE = {
    "plaque_immatriculation": PLATE,
    "marque": "Toyota",
    "modele": "Hilux",
    "annee": 2021,
    "couleur": "Blanc",
    "numero_chassis": "JTFHX02P000123456",
}

AGENCY_ROUTES = [
    ("ONT", "/ont/vehicules/{}/carte-grise", "statut_carte_grise"),
    ("ASSURANCE", "/assurance/vehicules/{}/statut", "statut_assurance"),
    ("MAIRIE", "/mairie/vehicules/{}/vignette", "statut_vignette"),
    ("MTS", "/mts/vehicules/{}/visite-technique", "statut_visite_technique"),
]


def seed_vehicle(db, plate=PLATE, **fields):
    now = datetime.utcnow()
    vehicle = Vehicle(plaque_immatriculation=plate, marque="Peugeot", modele="208",
                      date_creation=now, date_modification=now, **fields)
    db.add(vehicle)
    db.commit()
    return vehicle


def seed_owner(db, **fields):
    owner = Owner(nom="Coulibaly", prenom="Fatoumata", adresse="Bamako, ACI 2000",
                  type_piece_identite="CNI", numero_piece_identite="ML-778812",
                  date_creation=datetime.utcnow(), **fields)
    db.add(owner)
    db.commit()
    return owner


def fetch_vehicle(plate=PLATE):
    with SessionLocal() as s:
        return s.query(Vehicle).filter(Vehicle.plaque_immatriculation == plate).first()


def fetch_payments(plate=PLATE):
    with SessionLocal() as s:
        return s.query(Payment).filter(Payment.plaque_immatriculation == plate).all()


class TestAuthorization:
    def test_missing_token_is_401(self, client):
        resp = client.post("/vehicules", json=NEW_VEHICLE)
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Authentication token missing"

    def test_malformed_header_is_401(self, client):
        resp = client.post("/vehicules", json=NEW_VEHICLE, headers={"Authorization": "Token abc"})
        assert resp.status_code == 401

    def test_undecodable_token_is_401(self, client):
        resp = client.post("/vehicules", json=NEW_VEHICLE, headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid authentication token"

    def test_wrong_role_is_403(self, client, db):
        seed_vehicle(db)
        resp = client.put(f"/ont/vehicules/{PLATE}/carte-grise", json={"nouveau_statut": "VALIDE"},
                          headers=auth("MAIRIE"))
        assert resp.status_code == 403
        assert fetch_vehicle().statut_carte_grise == "MANQUANT"

    def test_stats_reserved_to_etat(self, client):
        assert client.get("/stats", headers=auth("POLICE")).status_code == 403
        assert client.get("/stats").status_code == 401
        assert client.get("/stats", headers=auth("ETAT")).status_code == 200

    def test_reads_are_open(self, client, db):
        seed_vehicle(db)
        assert client.get(f"/vehicules/{PLATE}").status_code == 200
        assert client.get("/vehicules").status_code == 200
        assert client.get("/proprietaires").status_code == 200


class TestVehicleCreation:
    def test_customs_creation_records_fee(self, client, prices, side_effects):
        resp = client.post("/vehicules", json=NEW_VEHICLE, headers=auth("DOUANE"))

        assert resp.status_code == 201
        body = resp.json()
        assert body["plaque_immatriculation"] == PLATE
        assert body["statut_carte_grise"] == "MANQUANT"
        assert body["statut_police"] == "NORMAL"

        payments = fetch_payments()
        assert len(payments) == 1
        assert payments[0].service == "Douane"
        assert payments[0].montant == 5000
        side_effects.updated.assert_awaited_once_with(PLATE)
        side_effects.audit.assert_called_once_with(f"VEHICULE_CREE: Plaque={PLATE}, Marque=Toyota")

    @pytest.mark.parametrize("plate", [
        "ab-1234-cd", "AB1234CD", "A-1234-CD", "AB-123-CD", "AB-1234-CDE", "",
        "AB-1234-CD\n", "AB-\u0661\u0662\u0663\u0664-CD",
    ])
    def test_bad_plate_format_is_400_and_creates_nothing(self, client, prices, side_effects, plate):
        resp = client.post("/vehicules", json={**NEW_VEHICLE, "plaque_immatriculation": plate},
                           headers=auth("DOUANE"))

        assert resp.status_code == 400
        with SessionLocal() as s:
            assert s.query(Vehicle).count() == 0
            assert s.query(Payment).count() == 0
        side_effects.updated.assert_not_called()

    def test_duplicate_plate_is_400(self, client, db, prices):
        seed_vehicle(db)
        resp = client.post("/vehicules", json=NEW_VEHICLE, headers=auth("DOUANE"))
        assert resp.status_code == 400
        assert fetch_payments() == []

    def test_duplicate_chassis_is_400(self, client, db, prices, side_effects):
        seed_vehicle(db, plate="EF-5678-GH", numero_chassis=NEW_VEHICLE["numero_chassis"])

        resp = client.post("/vehicules", json=NEW_VEHICLE, headers=auth("DOUANE"))

        assert resp.status_code == 400
        assert fetch_vehicle() is None
        assert fetch_payments() == []
        side_effects.updated.assert_not_called()

    def test_only_customs_may_create(self, client):
        assert client.post("/vehicules", json=NEW_VEHICLE, headers=auth("ONT")).status_code == 403

    def test_unknown_owner_is_404(self, client, prices):
        resp = client.post("/vehicules", json={**NEW_VEHICLE, "proprietaire_id": 999}, headers=auth("DOUANE"))
        assert resp.status_code == 404


class TestVehicleReadUpdateDelete:
    def test_get_joins_owner(self, client, db):
        owner = seed_owner(db)
        seed_vehicle(db, proprietaire_id=owner.id)

        body = client.get(f"/vehicules/{PLATE}").json()

        assert body["proprietaire_nom"] == "Coulibaly"
        assert body["proprietaire_prenom"] == "Fatoumata"
        assert body["proprietaire_numero_piece_identite"] == "ML-778812"

    def test_get_unknown_is_404(self, client):
        assert client.get("/vehicules/ZZ-0000-ZZ").status_code == 404

    def test_general_update_links_owner(self, client, db, side_effects):
        owner = seed_owner(db)
        seed_vehicle(db)

        resp = client.put(f"/vehicules/{PLATE}", headers=auth("DOUANE"),
                          json={"proprietaire_id": owner.id, "couleur": "Rouge", "statut_general": "NORMAL"})

        assert resp.status_code == 200
        assert resp.json()["vehicule"]["couleur"] == "Rouge"
        assert resp.json()["vehicule"]["proprietaire_nom"] == "Coulibaly"
        side_effects.updated.assert_awaited_once_with(PLATE)

    @pytest.mark.parametrize("field", ["marque", "modele"])
    def test_null_required_field_is_400_and_row_unchanged(self, client, db, side_effects, field):
        seed_vehicle(db)

        resp = client.put(f"/vehicules/{PLATE}", json={field: None}, headers=auth("DOUANE"))

        assert resp.status_code == 400
        vehicle = fetch_vehicle()
        assert (vehicle.marque, vehicle.modele) == ("Peugeot", "208")
        side_effects.updated.assert_not_called()

    def test_update_unknown_plate_is_404(self, client, side_effects):
        resp = client.put("/vehicules/ZZ-9999-ZZ", json={"couleur": "Rouge"}, headers=auth("DOUANE"))

        assert resp.status_code == 404
        side_effects.updated.assert_not_called()
        side_effects.audit.assert_not_called()

    def test_delete_unknown_plate_is_404(self, client, side_effects):
        resp = client.delete("/vehicules/ZZ-9999-ZZ", headers=auth("POLICE"))

        assert resp.status_code == 404
        side_effects.updated.assert_not_called()
        side_effects.audit.assert_not_called()

    def test_general_update_requires_token(self, client, db):
        seed_vehicle(db)
        assert client.put(f"/vehicules/{PLATE}", json={"couleur": "Rouge"}).status_code == 401

    def test_delete(self, client, db, side_effects):
        seed_vehicle(db)

        resp = client.delete(f"/vehicules/{PLATE}", headers=auth("POLICE"))

        assert resp.status_code == 200
        assert fetch_vehicle() is None
        side_effects.updated.assert_awaited_once_with(PLATE)


class TestAgencyRoutes:
    @pytest.mark.parametrize("role,path,column", AGENCY_ROUTES)
    def test_status_update(self, client, db, side_effects, role, path, column):
        seed_vehicle(db)

        resp = client.put(path.format(PLATE), json={"nouveau_statut": "EXPIRÉ"}, headers=auth(role))

        assert resp.status_code == 200
        assert resp.json()["vehicule"][column] == "EXPIRÉ"
        assert getattr(fetch_vehicle(), column) == "EXPIRÉ"
        side_effects.updated.assert_awaited_once_with(PLATE)

    @pytest.mark.parametrize("role,path,column", AGENCY_ROUTES)
    @pytest.mark.parametrize("value", ["PERDU", "valide", ""])
    def test_out_of_enumeration_is_400_and_row_unchanged(self, client, db, side_effects, role, path, column, value):
        seed_vehicle(db)

        resp = client.put(path.format(PLATE), json={"nouveau_statut": value}, headers=auth(role))

        assert resp.status_code == 400
        assert getattr(fetch_vehicle(), column) == "MANQUANT"
        side_effects.updated.assert_not_called()

    @pytest.mark.parametrize("role,path", [
        ("ONT", "/ont/vehicules/{}/carte-grise"),
        ("ASSURANCE", "/assurance/vehicules/{}/statut"),
        ("MAIRIE", "/mairie/vehicules/{}/vignette"),
        ("MTS", "/mts/vehicules/{}/visite-technique"),
        ("POLICE", "/police/vehicules/{}/statut-police"),
    ])
    def test_unknown_plate_is_404(self, client, side_effects, role, path):
        body = {"nouveau_statut": "NORMAL" if role == "POLICE" else "VALIDE"}
        resp = client.put(path.format("ZZ-9999-ZZ"), json=body, headers=auth(role))
        assert resp.status_code == 404
        side_effects.updated.assert_not_called()

    def test_carte_grise_validation_inserts_one_payment(self, client, db, prices):
        seed_vehicle(db)

        client.put(f"/ont/vehicules/{PLATE}/carte-grise", json={"nouveau_statut": "VALIDE"}, headers=auth("ONT"))

        payments = fetch_payments()
        assert [(p.service, p.montant) for p in payments] == [("Carte Grise", 25000)]

    def test_vignette_uses_current_price(self, client, db, prices):
        seed_vehicle(db)
        db.query(Parameter).filter(Parameter.nom == "prix_vignette").update({"valeur": 17500})
        db.commit()

        client.put(f"/mairie/vehicules/{PLATE}/vignette", json={"nouveau_statut": "VALIDE"}, headers=auth("MAIRIE"))

        assert [(p.service, p.montant) for p in fetch_payments()] == [("Vignette", 17500)]

    def test_revalidation_does_not_charge_twice(self, client, db, prices):
        seed_vehicle(db)
        for _ in range(2):
            client.put(f"/ont/vehicules/{PLATE}/carte-grise", json={"nouveau_statut": "VALIDE"}, headers=auth("ONT"))
        assert len(fetch_payments()) == 1

    def test_renewal_after_expiry_is_charged(self, client, db, prices):
        seed_vehicle(db)
        for status in ("VALIDE", "EXPIRÉ", "VALIDE"):
            client.put(f"/mairie/vehicules/{PLATE}/vignette", json={"nouveau_statut": status}, headers=auth("MAIRIE"))
        assert len(fetch_payments()) == 2

    def test_insurance_and_inspection_are_free(self, client, db, prices):
        seed_vehicle(db)
        client.put(f"/assurance/vehicules/{PLATE}/statut", json={"nouveau_statut": "VALIDE"}, headers=auth("ASSURANCE"))
        client.put(f"/mts/vehicules/{PLATE}/visite-technique", json={"nouveau_statut": "VALIDE"}, headers=auth("MTS"))
        assert fetch_payments() == []


class TestPoliceRoute:
    def test_stolen_updates_without_alert(self, client, db, side_effects):
        seed_vehicle(db)

        resp = client.put(f"/police/vehicules/{PLATE}/statut-police", json={"nouveau_statut": "VOLÉ"},
                          headers=auth("POLICE"))

        assert resp.status_code == 200
        assert fetch_vehicle().statut_police == "VOLÉ"
        side_effects.updated.assert_awaited_once_with(PLATE)
        side_effects.fleeing.assert_not_called()

    def test_fleeing_raises_exactly_one_alert(self, client, db, side_effects):
        seed_vehicle(db)

        client.put(f"/police/vehicules/{PLATE}/statut-police", json={"nouveau_statut": "EN FUITE"},
                   headers=auth("POLICE"))

        side_effects.fleeing.assert_awaited_once_with(PLATE)
        side_effects.updated.assert_awaited_once_with(PLATE)

    def test_document_status_rejected_for_police(self, client, db):
        seed_vehicle(db)
        resp = client.put(f"/police/vehicules/{PLATE}/statut-police", json={"nouveau_statut": "VALIDE"},
                          headers=auth("POLICE"))
        assert resp.status_code == 400
        assert fetch_vehicle().statut_police == "NORMAL"

    def test_other_agencies_cannot_flag(self, client, db):
        seed_vehicle(db)
        resp = client.put(f"/police/vehicules/{PLATE}/statut-police", json={"nouveau_statut": "VOLÉ"},
                          headers=auth("ONT"))
        assert resp.status_code == 403


class TestOwners:
    def test_create_and_list(self, client, side_effects):
        resp = client.post("/proprietaires", headers=auth("DOUANE"),
                           json={"nom": "Diarra", "prenom": "Issa", "adresse": "Kayes"})
        assert resp.status_code == 201
        owner_id = resp.json()["id"]

        assert client.get(f"/proprietaires/{owner_id}").json()["nom"] == "Diarra"
        assert [o["nom"] for o in client.get("/proprietaires").json()] == ["Diarra"]
        side_effects.owner_audit.assert_called_once()

    def test_update_contact(self, client, db):
        owner = seed_owner(db)
        resp = client.put(f"/proprietaires/{owner.id}", headers=auth("ASSURANCE"),
                          json={"telephone": "+223 70 00 00 00"})
        assert resp.status_code == 200
        assert resp.json()["data"]["telephone"] == "+223 70 00 00 00"

    def test_delete_detaches_vehicles(self, client, db):
        owner = seed_owner(db)
        seed_vehicle(db, proprietaire_id=owner.id)

        resp = client.delete(f"/proprietaires/{owner.id}", headers=auth("ETAT"))

        assert resp.status_code == 200
        assert fetch_vehicle().proprietaire_id is None

    def test_unknown_owner_is_404(self, client):
        assert client.get("/proprietaires/42").status_code == 404
        assert client.delete("/proprietaires/42", headers=auth("ETAT")).status_code == 404


class TestParametersAndPayments:
    def test_list_requires_token(self, client, prices):
        assert client.get("/parametres").status_code == 401
        names = [p["nom"] for p in client.get("/parametres", headers=auth("MAIRIE")).json()]
        assert names == ["prix_carte_grise", "prix_douane", "prix_vignette"]

    def test_only_etat_updates_price(self, client, prices, side_effects):
        assert client.put("/parametres/prix_douane", json={"valeur": 7500}, headers=auth("DOUANE")).status_code == 403

        resp = client.put("/parametres/prix_douane", json={"valeur": 7500}, headers=auth("ETAT"))

        assert resp.status_code == 200
        assert resp.json()["valeur"] == 7500
        side_effects.param_audit.assert_called_once()

    def test_unknown_parameter_is_404(self, client, prices):
        assert client.put("/parametres/prix_inconnu", json={"valeur": 1}, headers=auth("ETAT")).status_code == 404

    def test_negative_price_rejected(self, client, prices):
        assert client.put("/parametres/prix_douane", json={"valeur": -1}, headers=auth("ETAT")).status_code == 400

    def test_new_price_applies_to_next_creation(self, client, prices):
        client.put("/parametres/prix_douane", json={"valeur": 6000}, headers=auth("ETAT"))
        client.post("/vehicules", json=NEW_VEHICLE, headers=auth("DOUANE"))

        resp = client.get(f"/paiements?plaque={PLATE}", headers=auth("ETAT"))

        assert [(p["service"], p["montant"]) for p in resp.json()] == [("Douane", 6000)]


class TestStatsRoute:
    def test_counts_follow_mutations(self, client, prices):
        client.post("/vehicules", json=NEW_VEHICLE, headers=auth("DOUANE"))
        client.put(f"/police/vehicules/{PLATE}/statut-police", json={"nouveau_statut": "EN FUITE"},
                   headers=auth("POLICE"))

        stats = client.get("/stats", headers=auth("ETAT")).json()

        assert stats["totalVehicules"] == 1
        assert stats["vehiculesSignales"] == 1
        assert stats["revenus"]["douane"] == 5000

    def test_malformed_period_is_not_rejected(self, client):
        resp = client.get("/stats?debut=n'importe&fin=quoi", headers=auth("ETAT"))
        assert resp.status_code == 200
        assert resp.json()["periode"] is None


class TestErrorHandling:
    def test_database_failure_is_generic_500(self, db):
        from fastapi.testclient import TestClient
        from app.main import app

        with patch("app.routers.vehicles.vehicle_service.list_vehicles",
                   side_effect=OperationalError("SELECT", {}, Exception("connection lost"))):
            resp = TestClient(app, raise_server_exceptions=False).get("/vehicules")

        assert resp.status_code == 500
        assert resp.json() == {"detail": "Internal server error"}

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["database"] == "ok"
        assert body["audit_ledger"] == "log-only"

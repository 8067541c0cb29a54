"""
Initialize database — creates all tables and seeds the service prices.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import datetime
from sqlalchemy import inspect, text
from app.database import create_tables, engine, SessionLocal
from app.config import settings
from app.models.parameter import Parameter

# Default prices (FCFA). Adjust afterwards with PUT /parametres/{nom} as ETAT.
DEFAULT_PARAMETERS = {
    "prix_douane": (5000, "Frais d'entrée en douane, perçus à l'enregistrement du véhicule"),
    "prix_carte_grise": (25000, "Délivrance de la carte grise (ONT)"),
    "prix_vignette": (15000, "Vignette municipale (Mairie)"),
}


def seed_parameters():
    db = SessionLocal()
    try:
        created = 0
        for nom, (valeur, description) in DEFAULT_PARAMETERS.items():
            if db.query(Parameter).filter(Parameter.nom == nom).first():
                print(f"   • {nom} already set — kept")
                continue
            db.add(Parameter(nom=nom, valeur=valeur, description=description,
                             date_modification=datetime.utcnow()))
            created += 1
            print(f"   ✓ {nom} = {valeur}")
        db.commit()
        return created
    finally:
        db.close()


def main():
    print("🗄️  SIU DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"✅ Tables ready ({len(tables)}): {', '.join(tables)}")

    print("\n💰 Seeding service prices...")
    created = seed_parameters()
    print(f"✅ {created} parameter(s) created")

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host 0.0.0.0 --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()

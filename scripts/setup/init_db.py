# scripts/setup/init_db.py
"""
Initialize database — creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed]
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import argparse
from sqlalchemy import inspect, text
from fleetpool.database import create_tables, engine, SessionLocal
from fleetpool.config import settings
from fleetpool.schemas.vehicle import VehicleCreate
from fleetpool.services.vehicle_service import add_vehicle, lookup_vehicle_by_plate

DEMO_VEHICLES = [
    ("Fiat Panda", "AB123CD", 10000),
    ("Fiat Doblò", "EF456GH", 42500),
    ("Renault Clio", "IJ789KL", 8300),
]


def seed_vehicles():
    db = SessionLocal()
    try:
        for model, plate, km in DEMO_VEHICLES:
            if lookup_vehicle_by_plate(db, plate):
                print(f"   • {plate} already present")
                continue
            add_vehicle(db, VehicleCreate(model=model, plate=plate, km=km))
            print(f"   ✓ {plate} {model} ({km} km)")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create Fleet Pool tables")
    parser.add_argument("--seed", action="store_true", help="Add a few demo vehicles")
    args = parser.parse_args()

    print("🗄️  Fleet Pool DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running, or set DATABASE_URL=sqlite:///./fleet_pool.db")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if args.seed:
        print("\n🚗 Seeding demo vehicles...")
        seed_vehicles()

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn fleetpool.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()

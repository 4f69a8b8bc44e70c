# scripts/setup/init_db.py
"""
Initialize database, creates all tables, optionally seeds a first parking.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed] [--capacity 50]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine, SessionLocal
from app.config import settings
from app.models.parking import Parking
from app.services import parking_service, tariff_service
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

DEFAULT_TARIFFS = {"MOTO": 200, "VOITURE": 500, "CAMION": 1000, "AUTRE": 500}


def seed(name: str, capacity: int):
    db = SessionLocal()
    try:
        if db.query(Parking).filter(Parking.name == name).first():
            print(f"ℹ️  Parking '{name}' already exists, seed skipped")
            return
        parking = parking_service.create_parking(db, name, capacity, description="Seeded by init_db")
        for vehicle_type, price in DEFAULT_TARIFFS.items():
            tariff_service.create_tariff(db, parking.id, vehicle_type, price)
        print(f"✅ Seeded parking '{name}' ({capacity} places) with {len(DEFAULT_TARIFFS)} tariffs")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create tables and optionally seed a parking")
    parser.add_argument("--seed", action="store_true", help="create a first parking with default tariffs")
    parser.add_argument("--name", default="Main Parking")
    parser.add_argument("--capacity", type=int, default=50)
    args = parser.parse_args()

    print("🗄️  Parking DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except SQLAlchemyError as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print("✅ All tables created")

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if args.seed:
        print()
        seed(args.name, args.capacity)

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn app.main:socket_app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()

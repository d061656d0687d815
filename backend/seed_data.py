"""
Seed the database with sample vehicle listings for local development.

Run: python -m backend.seed_data
"""

from backend.database.db import init_db, SessionLocal
from backend.database.models import Listing


SAMPLE_LISTINGS = [
    {"id": "lst-0001", "title": "2023 Porsche 911 Carrera S", "brand": "Porsche", "model": "911", "price": 95, "year": 2023, "mileage": 8000, "fuel_type": "Petrol", "transmission": "Automatic", "location": "Colombo", "condition": "Used"},
    {"id": "lst-0002", "title": "2024 Porsche Cayenne E-Hybrid", "brand": "Porsche", "model": "Cayenne", "price": 120, "year": 2024, "mileage": 0, "fuel_type": "Hybrid", "transmission": "Automatic", "location": "Colombo", "condition": "New"},
    {"id": "lst-0003", "title": "2022 Porsche Taycan 4S", "brand": "Porsche", "model": "Taycan", "price": 88, "year": 2022, "mileage": 15000, "fuel_type": "Electric", "transmission": "Automatic", "location": "Kandy", "condition": "Used"},
    {"id": "lst-0004", "title": "2021 BMW X5 xDrive45e", "brand": "BMW", "model": "X5", "price": 62, "year": 2021, "mileage": 32000, "fuel_type": "Hybrid", "transmission": "Automatic", "location": "Colombo", "condition": "Used"},
    {"id": "lst-0005", "title": "2024 BMW i7 xDrive60", "brand": "BMW", "model": "i7", "price": 140, "year": 2024, "mileage": 0, "fuel_type": "Electric", "transmission": "Automatic", "location": "Galle", "condition": "New"},
    {"id": "lst-0006", "title": "2020 Mercedes-Benz G 63 AMG", "brand": "Mercedes-Benz", "model": "G-Class", "price": 110, "year": 2020, "mileage": 41000, "fuel_type": "Petrol", "transmission": "Automatic", "location": "Colombo", "condition": "Used"},
    {"id": "lst-0007", "title": "2023 Mercedes-Benz EQS 450+", "brand": "Mercedes-Benz", "model": "EQS", "price": 99, "year": 2023, "mileage": 6000, "fuel_type": "Electric", "transmission": "Automatic", "location": "Negombo", "condition": "Used"},
    {"id": "lst-0008", "title": "2019 Land Rover Defender 110", "brand": "Land Rover", "model": "Defender", "price": 58, "year": 2019, "mileage": 54000, "fuel_type": "Diesel", "transmission": "Automatic", "location": "Kandy", "condition": "Used"},
    {"id": "lst-0009", "title": "2018 Toyota Land Cruiser Prado", "brand": "Toyota", "model": "Prado", "price": 45, "year": 2018, "mileage": 78000, "fuel_type": "Diesel", "transmission": "Manual", "location": "Jaffna", "condition": "Used"},
    {"id": "lst-0010", "title": "2024 Toyota Aqua", "brand": "Toyota", "model": "Aqua", "price": 12, "year": 2024, "mileage": 0, "fuel_type": "Hybrid", "transmission": "Automatic", "location": "Colombo", "condition": "New"},
]


def seed_listings(db):
    """Insert sample listings that are not already present."""
    added = 0
    for data in SAMPLE_LISTINGS:
        if db.get(Listing, data["id"]) is not None:
            continue
        db.add(Listing(description=f"{data['title']} in {data['location']}", **data))
        added += 1
    db.commit()
    return added


if __name__ == "__main__":
    init_db()
    db = SessionLocal()
    try:
        added = seed_listings(db)
        print(f"Seeded {added} listings ({len(SAMPLE_LISTINGS) - added} already present)")
    finally:
        db.close()

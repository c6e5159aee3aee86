#!/usr/bin/env python3
"""
Seed script to create the demo restaurant, its floor plan and service hours
"""

import asyncio
import uuid
from datetime import time

DEMO_RESTAURANT_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from app.database import SessionLocal, engine, Base
    from app.models import Restaurant, Table, Service

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo restaurant already exists
        result = await db.execute(
            select(Restaurant).where(Restaurant.id == DEMO_RESTAURANT_ID)
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo restaurant...")

        restaurant = Restaurant(
            id=DEMO_RESTAURANT_ID,
            name="El Posit",
            phone="3001234567",
            address="Calle 10 # 5-20, Bogotá",
            timezone="America/Bogota",
        )
        db.add(restaurant)
        await db.flush()

        print(f"Created restaurant: {restaurant.name} (ID: {restaurant.id})")

        print("Creating floor plan...")

        tables = [
            {"table_number": "1", "capacity": 2, "location": "interior", "shape": "circular", "position_x": 40, "position_y": 40},
            {"table_number": "2", "capacity": 2, "location": "interior", "shape": "circular", "position_x": 160, "position_y": 40},
            {"table_number": "3", "capacity": 4, "location": "interior", "shape": "cuadrada", "position_x": 280, "position_y": 40},
            {"table_number": "4", "capacity": 4, "location": "interior", "shape": "cuadrada", "position_x": 40, "position_y": 180, "is_accessible": True},
            {"table_number": "5", "capacity": 6, "location": "interior", "shape": "rectangular", "position_x": 160, "position_y": 180},
            {"table_number": "6", "capacity": 8, "location": "terraza", "shape": "rectangular", "position_x": 40, "position_y": 320},
            {"table_number": "7", "capacity": 4, "location": "terraza", "shape": "cuadrada", "position_x": 200, "position_y": 320},
            {"table_number": "8", "capacity": 4, "location": "patio", "shape": "circular", "position_x": 40, "position_y": 460},
            {"table_number": "B1", "capacity": 4, "location": "interior", "shape": "barra", "position_x": 400, "position_y": 40, "stool_count": 4},
        ]

        for table_data in tables:
            square = table_data["shape"] in ("circular", "cuadrada")
            db.add(Table(
                restaurant_id=restaurant.id,
                width=80 if square else 120,
                height=80,
                **table_data,
            ))

        print("Creating service hours...")

        services = [
            Service(
                restaurant_id=restaurant.id,
                name="Comida entre semana",
                service_type="comida",
                day_type="weekday",
                start_time=time(13, 0),
                end_time=time(16, 0),
                default_duration_minutes=90,
                buffer_minutes=15,
            ),
            Service(
                restaurant_id=restaurant.id,
                name="Comida fin de semana",
                service_type="comida",
                day_type="weekend",
                start_time=time(13, 0),
                end_time=time(16, 0),
                default_duration_minutes=120,
                buffer_minutes=15,
                slot_generation_mode="manual",
                manual_slots=["13:00", "13:30", "14:00", "15:00"],
            ),
            Service(
                restaurant_id=restaurant.id,
                name="Cena",
                service_type="cena",
                day_type="all",
                start_time=time(20, 0),
                end_time=time(23, 0),
                default_duration_minutes=90,
                buffer_minutes=15,
            ),
        ]
        db.add_all(services)

        await db.commit()

        print(f"""
Demo data created successfully!

Restaurant: {restaurant.name}
  ID: {restaurant.id}

Tables: {len(tables)} created
Services: {len(services)} created (comida entre semana, comida fin de semana, cena)
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())

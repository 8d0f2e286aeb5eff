#!/usr/bin/env python3
"""
Seed script to create demo tables, opening hours and customers
"""

import asyncio
from datetime import time


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import func, select

    from app.database import SessionLocal, engine, Base
    from app.models import Customer, OpeningHours, RestaurantTable

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo data already exists
        result = await db.execute(select(func.count(RestaurantTable.id)))
        if result.scalar() > 0:
            print("Demo data already exists. Skipping...")
            return

        print("Creating tables...")
        for capacity in (2, 2, 4, 4, 4, 6, 8):
            db.add(RestaurantTable(capacity=capacity))

        print("Creating opening hours...")
        # Mon-Thu 12:00-23:00, Fri-Sat until 02:00, closed Sunday
        weekly = {
            0: (time(12, 0), time(23, 0)),
            1: (time(12, 0), time(23, 0)),
            2: (time(12, 0), time(23, 0)),
            3: (time(12, 0), time(23, 0)),
            4: (time(12, 0), time(2, 0)),
            5: (time(12, 0), time(2, 0)),
        }
        for day_of_week in range(7):
            hours = weekly.get(day_of_week)
            db.add(
                OpeningHours(
                    day_of_week=day_of_week,
                    open_time=hours[0] if hours else None,
                    close_time=hours[1] if hours else None,
                    closed=hours is None,
                )
            )

        print("Creating customers...")
        customers = [
            Customer(
                full_name="Dana Levi",
                phone="+15555550101",
                email="dana@example.com",
                is_subscribed=True,
                subscription_code="SUB-1001",
            ),
            Customer(
                full_name="Omar Haddad",
                phone="+15555550102",
                email="omar@example.com",
                is_subscribed=True,
                subscription_code="SUB-1002",
            ),
            Customer(full_name="Guest", phone="+15555550103"),
        ]
        db.add_all(customers)

        await db.commit()

        print(f"""
Demo data created successfully!

Tables: 7 (2, 2, 4, 4, 4, 6, 8 seats)
Opening hours: Mon-Thu 12:00-23:00, Fri-Sat 12:00-02:00, Sunday closed
Customers: {len(customers)} (2 subscribers)
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())

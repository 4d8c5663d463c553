#!/usr/bin/env python3
"""
Seed script to create a demo restaurant with tables, guests and staff
"""

import asyncio
import uuid

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEMO_TABLES = [
    # name, section, min, max
    ("T1", "main", 1, 2),
    ("T2", "main", 1, 2),
    ("T3", "main", 2, 4),
    ("T4", "main", 2, 4),
    ("T5", "main", 4, 6),
    ("P1", "patio", 2, 4),
    ("P2", "patio", 2, 4),
    ("B1", "bar", 1, 2),
    ("PR1", "private", 6, 12),
]

DEMO_GUESTS = [
    ("Alice", "Moreau", "alice@example.com", "+15550100001", True),
    ("Ben", "Okafor", "ben@example.com", "+15550100002", False),
    ("Chen", "Wei", "chen@example.com", "+15550100003", False),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from tableflow.database import SessionLocal, engine, Base
    from tableflow.models import DiningTable, Guest, Tenant, User, UserRole

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo tenant already exists
        result = await db.execute(
            select(Tenant).where(Tenant.name == "Harbor Bistro")
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo tenant...")

        tenant = Tenant(
            id=uuid.uuid4(),
            name="Harbor Bistro",
            timezone="America/New_York",
        )
        db.add(tenant)
        await db.flush()

        print(f"Created tenant: {tenant.name} (ID: {tenant.id})")

        for name, section, min_capacity, max_capacity in DEMO_TABLES:
            db.add(
                DiningTable(
                    tenant_id=tenant.id,
                    name=name,
                    section=section,
                    min_capacity=min_capacity,
                    max_capacity=max_capacity,
                )
            )

        for first_name, last_name, email, phone, is_vip in DEMO_GUESTS:
            db.add(
                Guest(
                    tenant_id=tenant.id,
                    first_name=first_name,
                    last_name=last_name,
                    email=email,
                    phone=phone,
                    is_vip=is_vip,
                )
            )

        # Create super admin user
        db.add(
            User(
                email="admin@tableflow.dev",
                hashed_password=pwd_context.hash("admin123"),
                full_name="System Admin",
                role=UserRole.SUPER_ADMIN,
                is_active=True,
            )
        )

        # Create restaurant staff
        db.add(
            User(
                tenant_id=tenant.id,
                email="manager@harborbistro.com",
                hashed_password=pwd_context.hash("manager123"),
                full_name="Dana Reyes",
                role=UserRole.RESTAURANT_ADMIN,
                is_active=True,
            )
        )
        db.add(
            User(
                tenant_id=tenant.id,
                email="host@harborbistro.com",
                hashed_password=pwd_context.hash("host123"),
                full_name="Sam Lee",
                role=UserRole.HOST,
                is_active=True,
            )
        )

        await db.commit()

        print(f"""
Demo data created successfully!

Tenant: Harbor Bistro
  ID: {tenant.id}

Users:
  Super Admin:
    Email: admin@tableflow.dev
    Password: admin123

  Restaurant Admin:
    Email: manager@harborbistro.com
    Password: manager123

  Host:
    Email: host@harborbistro.com
    Password: host123

Tables: {len(DEMO_TABLES)} created
Guests: {len(DEMO_GUESTS)} created
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())

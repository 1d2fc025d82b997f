#!/usr/bin/env python3
"""
Database seeding script for development and testing.
Creates sample users, a client, a staffed project and a few attendance rows.
"""

import asyncio
import sys
from pathlib import Path
from datetime import date, timedelta

# Add parent directory to path to import our modules
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from backoffice.database import async_engine, Base, AsyncSessionLocal
from backoffice.models import (
    Attendance,
    AttendanceType,
    Client,
    Project,
    ProjectStatus,
    User,
    UserRole,
)
from backoffice.services.auth_service import AuthService
from backoffice.services.document_numbers import generate_project_number

DEFAULT_PASSWORD = "changeme123"


async def create_tables():
    """Create all database tables"""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("✓ Database tables created")


def build_user(email, first_name, last_name, role, salary=None):
    return User(
        email=email,
        password_hash=AuthService.hash_password(DEFAULT_PASSWORD),
        phone_numbers=["+971500000000"],
        first_name=first_name,
        last_name=last_name,
        role=role.value,
        salary=salary,
    )


async def seed_data():
    """Seed the database with sample data"""
    async with AsyncSessionLocal() as session:
        try:
            # Create users
            admin = build_user("admin@alghazal-fm.ae", "Amira", "Haddad", UserRole.ADMIN)
            engineer = build_user("engineer@alghazal-fm.ae", "Omar", "Saleh", UserRole.ENGINEER)
            finance = build_user("finance@alghazal-fm.ae", "Layla", "Nasser", UserRole.FINANCE)
            worker1 = build_user("ravi@alghazal-fm.ae", "Ravi", "Kumar", UserRole.WORKER, salary=120)
            worker2 = build_user("joseph@alghazal-fm.ae", "Joseph", "Mathew", UserRole.WORKER, salary=100)
            driver = build_user("driver@alghazal-fm.ae", "Imran", "Ali", UserRole.DRIVER, salary=90)
            session.add_all([admin, engineer, finance, worker1, worker2, driver])
            await session.flush()
            print("✓ Created users")

            # Create client
            client = Client(
                client_name="Marina Towers LLC",
                client_address="Dubai Marina, Tower B, Dubai",
                pincode="000000",
                mobile_number="+971501234567",
                email="facilities@marinatowers.ae",
                trn_number="100234567800003",
                created_by_id=admin.id,
            )
            session.add(client)
            await session.flush()
            print("✓ Created client")

            # Create a project that already has its team on site
            project = Project(
                project_number=await generate_project_number(session),
                name="Chiller Overhaul",
                description="Annual chiller maintenance and coil replacement",
                client_id=client.id,
                location="Dubai Marina",
                building="Tower B",
                apartment_number="Plant Room",
                status=ProjectStatus.TEAM_ASSIGNED.value,
                created_by_id=admin.id,
                assigned_engineer_id=engineer.id,
                assigned_driver_id=driver.id,
                assigned_workers=[worker1, worker2],
            )
            session.add(project)
            await session.flush()
            print(f"✓ Created project {project.project_number}")

            # Two days of attendance
            start = date.today() - timedelta(days=2)
            rows = []
            for offset in range(2):
                day = start + timedelta(days=offset)
                for worker in (worker1, worker2):
                    rows.append(Attendance(
                        user_id=worker.id,
                        project_id=project.id,
                        date=day,
                        present=True,
                        type=AttendanceType.PROJECT.value,
                        marked_by_id=driver.id,
                    ))
            session.add_all(rows)
            await session.flush()
            print("✓ Created attendance")

            await session.commit()
            print("\n✅ Database seeding completed successfully!")

            # Print summary
            print("\nSummary:")
            print(f"  - Users: 6 (password: {DEFAULT_PASSWORD})")
            print(f"  - Clients: 1")
            print(f"  - Projects: 1")
            print(f"  - Attendance rows: {len(rows)}")
            print(f"\nAdmin token:\n  {AuthService.issue_token(admin)}")

        except Exception as e:
            await session.rollback()
            print(f"❌ Error seeding database: {e}")
            raise


async def main():
    """Main function"""
    print("Starting database seeding...\n")

    # Optionally create tables first (useful for fresh databases)
    # Uncomment the next line if you want to create tables before seeding
    # await create_tables()

    await seed_data()


if __name__ == "__main__":
    asyncio.run(main())

"""Initialize database tables and optionally seed a demo class."""

import asyncio
import sys

from backend.app.db.base import AsyncSessionLocal, Base, engine
from backend.app.models import Item, SchoolClass, Student, User
from backend.app.models.user import StudentRole, UserRole, UserStatus

DEMO_ITEMS = ["Projector", "Whiteboard", "Fire extinguisher", "Windows", "Desks"]


async def seed_demo_data():
    """Create a demo class with an admin, a reporter and the CS/CP representatives."""
    async with AsyncSessionLocal() as db:
        school_class = SchoolClass(name="Computer Science Year 1", description="Demo class")
        db.add(school_class)
        db.add_all(Item(name=name) for name in DEMO_ITEMS)
        db.add(User(name="Admin", email="admin@example.com", role=UserRole.ADMIN.value, status=UserStatus.ACTIVE.value))
        await db.flush()

        for name, email, role in [
            ("Class Secretary", "cs@example.com", StudentRole.CS),
            ("Class President", "cp@example.com", StudentRole.CP),
            ("Reporter", "reporter@example.com", StudentRole.WS),
        ]:
            user = User(name=name, email=email, role=UserRole.STUDENT.value, status=UserStatus.ACTIVE.value)
            db.add(user)
            await db.flush()
            db.add(Student(user_id=user.id, class_id=school_class.id, student_role=role.value))

        await db.commit()

    print("Demo data seeded.")


async def init_db(seed: bool = False):
    """Create all database tables."""
    async with engine.begin() as conn:
        # Drop all tables (for development)
        await conn.run_sync(Base.metadata.drop_all)
        # Create all tables
        await conn.run_sync(Base.metadata.create_all)

    print("Database tables created successfully!")

    if seed:
        await seed_demo_data()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db(seed="--seed" in sys.argv))

"""Create the accommodations table from the SQLModel models."""
import asyncio

from core.database import close_db, init_db


async def main():
    """Create all tables."""
    await init_db()
    await close_db()
    print("Database tables created successfully!")

if __name__ == "__main__":
    asyncio.run(main())

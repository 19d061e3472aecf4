#!/usr/bin/env python3
"""
Initialize database with all tables
"""
import asyncio
import sys
import os

from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from worksense.config import get_settings
from worksense.database import Database
from worksense.models import Base


async def init_database():
    """Create all tables"""
    settings = get_settings()
    database = Database(settings)

    print(f"🗄️  Initializing database at {settings.database_url}...")
    print(f"Creating tables: {', '.join([t.name for t in Base.metadata.sorted_tables])}")

    try:
        await database.create_all()
    finally:
        await database.dispose()

    print("✅ Database initialized successfully!")


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(init_database())

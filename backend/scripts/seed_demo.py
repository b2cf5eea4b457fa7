# backend/scripts/seed_demo.py
"""
Usage:
  # ensure DATABASE_URL is set (or use .env)
  python backend/scripts/seed_demo.py
This script will:
 - create the tables if they are missing
 - load the sample movies, showtimes and seats unless movies already exist
"""
import asyncio
import os
import sys

# Add the backend directory to the path for app imports
BACKEND_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from app.config import DATABASE_URL
from app.db import Database
from app.storage.sql import SqlStorage


async def seed():
    if not DATABASE_URL:
        print("DATABASE_URL is not set; nothing to seed.")
        return 1

    db = Database(DATABASE_URL)
    try:
        await db.create_all()
        storage = SqlStorage(db)
        created = await storage.initialize_data()
        movies = await storage.list_movies()
        showtimes = await storage.list_showtimes()
    finally:
        await db.dispose()

    print("Seed complete." if created else "Catalogue already present.")
    print("Movies:", [m.title for m in movies])
    print("Showtimes:", len(showtimes))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed()))

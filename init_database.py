#!/usr/bin/env python3
"""
Script to initialize the MongoDB database with the attendance indexes
"""

import sys

from campus_attendance.core.config import settings
from campus_attendance.database import DatabaseManager

def init_database() -> int:
    """Connect and create the unique indexes the attendance service relies on"""

    print("🔧 Initializing attendance database...")

    if not settings.MONGODB_URL:
        print("❌ MONGODB_URL is not set")
        return 1

    manager = DatabaseManager(settings.MONGODB_URL, settings.MONGODB_DATABASE)
    if not manager.connect():
        print("❌ Could not connect to MongoDB")
        return 1

    try:
        # connect() already ran ensure_indexes; list them for the operator
        db = manager.get_database()
        for collection in ("sessions", "qr_tokens", "attendance"):
            names = sorted(db[collection].index_information())
            print(f"✅ {collection}: {', '.join(names)}")

        print("\n🎉 Database initialization completed successfully!")
        return 0
    finally:
        manager.disconnect()

if __name__ == "__main__":
    sys.exit(init_database())

#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the MongoDB connection is working.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from app.db.mongodb import test_mongo_connection
from app.core.config import get_settings


def main() -> int:
    settings = get_settings()
    print("=" * 50)
    print("JOB BOARD - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    connected = test_mongo_connection()
    print("    MongoDB: CONNECTED" if connected else "    MongoDB: FAILED")

    print("\n" + "=" * 50)
    return 0 if connected else 1


if __name__ == "__main__":
    sys.exit(main())

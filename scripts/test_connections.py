#!/usr/bin/env python3
"""
Connection Test Script

Run this to verify the database connection and schema.
Usage: python scripts/test_connections.py
"""
import sys
sys.path.insert(0, '.')

from app.core.config import get_settings
from app.db.postgres import execute_raw_sql, init_schema, test_postgres_connection
from app.db.tables import metadata


def main():
    settings = get_settings()
    print("=" * 50)
    print("SPONSORSHIP PLATFORM - CONNECTION TEST")
    print("=" * 50)

    print("\n[1] Testing database...")
    if settings.database_url:
        print("    URL: (DATABASE_URL override)")
    else:
        print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    if not test_postgres_connection():
        print("    ❌ Database: FAILED")
        return
    print("    ✅ Database: CONNECTED")

    print("\n[2] Ensuring schema...")
    init_schema()
    for table in metadata.sorted_tables:
        count = execute_raw_sql(f"SELECT COUNT(*) AS n FROM {table.name}")[0]["n"]
        print(f"    ✅ {table.name}: {count} rows")

    print("\n" + "=" * 50)
    print("Connection test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Create Admin Profile

Admins can trigger batch rescoring and read any match. They cannot register
through the API, so they are created here.

Usage:
    python scripts/create_admin.py ops@example.com --name "Ops Team"
"""
import argparse
import sys
sys.path.insert(0, '.')

from sqlalchemy import text

from app.db.postgres import get_db_session, init_schema


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin profile")
    parser.add_argument("email", help="Admin email (must be unused)")
    parser.add_argument("--name", default=None, help="Display name")
    args = parser.parse_args(argv)

    init_schema()
    email = args.email.strip().lower()

    with get_db_session() as db:
        existing = db.execute(
            text("SELECT profile_id, role FROM profiles WHERE LOWER(email) = :email"),
            {"email": email}
        ).first()
        if existing:
            print(f"    ❌ {email} already exists (profile {existing[0]}, role {existing[1]})")
            return 1

        profile_id = db.execute(
            text("""
                INSERT INTO profiles (email, full_name, role)
                VALUES (:email, :name, 'admin')
                RETURNING profile_id
            """),
            {"email": email, "name": args.name}
        ).first()[0]

    print(f"    ✅ Admin created: profile {profile_id} ({email})")
    print(f"    Send X-Profile-Id: {profile_id} on admin requests")
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Create an OJT trainee account in the OJT Tracker database.

Usage:
    python scripts/create_user.py "Juan Dela Cruz" juan@example.com --hours 486

The password is prompted for. The trainee registers a face later from the
dashboard.
"""

import sys
import os
import argparse
import getpass

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api.auth import hash_password
from api.users import MAX_TOTAL_HOURS
from config import Config
from services.db_manager import DBManager


def create_user(name, email, password, hours):
    """Insert a user unless the email is already taken. Returns the user ID or None."""
    db = DBManager(Config.DATABASE_URL)
    try:
        if db.get_user_by_email(email):
            print(f"⏭️  Already exists: {email}")
            return None

        user_id = db.create_user(
            name=name,
            email=email,
            password_hash=hash_password(password),
            ojt_total_hours=hours,
        )
        print(f"✅ Created: {name} <{email}> → ID {user_id} ({hours:g} OJT hours)")
        return user_id
    finally:
        db.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an OJT trainee account")
    parser.add_argument('name')
    parser.add_argument('email')
    parser.add_argument('--hours', type=float, default=Config.OJT_DEFAULT_TOTAL_HOURS,
                        help="required OJT hours")
    args = parser.parse_args(argv)

    if not 1 <= args.hours < MAX_TOTAL_HOURS:
        parser.error(f"--hours must be at least 1 and less than {MAX_TOTAL_HOURS}")

    password = getpass.getpass("Password: ")
    if not password or password != getpass.getpass("Confirm password: "):
        print("❌ Passwords are empty or do not match")
        sys.exit(1)

    create_user(args.name, args.email, password, args.hours)


if __name__ == '__main__':
    main()

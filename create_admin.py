#!/usr/bin/env python3
"""
Create the admin account, or reset its password.

    python create_admin.py --email admin@example.com --password secret
    python create_admin.py --email admin@example.com --password new --reset-password
"""
import argparse
import sys
from dotenv import load_dotenv

from config import Settings
from db import create_db_engine, create_session_factory
from models import User, UserRole


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or update the admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Admin")
    parser.add_argument("--reset-password", action="store_true",
                        help="update the password of an existing admin instead of creating one")
    args = parser.parse_args(argv)

    load_dotenv()
    settings = Settings.from_env()
    Session = create_session_factory(create_db_engine(settings))
    email = args.email.strip().lower()

    with Session() as session:
        existing = session.query(User).filter(User.email == email).first()

        if args.reset_password:
            if not existing or not existing.is_admin:
                print(f"ERROR: admin user not found: {email}")
                return 1
            existing.set_password(args.password)
            session.commit()
            print(f"✅ Admin password updated: {email}")
            return 0

        if existing:
            print(f"Admin already exists: {email}" if existing.is_admin else f"ERROR: {email} is a regular user")
            return 0 if existing.is_admin else 1

        admin = User(name=args.name, email=email, role=UserRole.ADMIN, is_verified=True, profile_pic="")
        admin.set_password(args.password)
        session.add(admin)
        session.commit()
        print(f"✅ Admin created: {email} (ID: {admin.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Create Admin Script

Admin accounts cannot self-register by default. This creates one directly
in MongoDB, or promotes an existing account with the same email.

Usage: python scripts/create_admin.py --email admin@example.com --name "Site Admin" --password secret1
"""
import argparse
import sys
sys.path.insert(0, '.')

from pydantic import ValidationError

from app.core.config import get_settings
from app.core.logging import setup_logging
from app.db.mongodb import get_mongo_db, init_mongo_indexes
from app.schemas.schemas import RegisterRequest, Role
from app.services.user_service import UserService


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create or promote a job board admin account.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--password", required=True, help="At least 6 characters")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(get_settings())

    try:
        request = RegisterRequest(name=args.name, email=args.email, password=args.password, role=Role.admin)
    except ValidationError as exc:
        for error in exc.errors():
            print(f"Invalid {'.'.join(str(p) for p in error['loc'])}: {error['msg']}")
        return 2

    db = get_mongo_db()
    init_mongo_indexes(db)
    user, created = UserService(db).ensure_admin(request)
    print(f"{'Created' if created else 'Promoted'} admin {user['email']} ({user['_id']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())

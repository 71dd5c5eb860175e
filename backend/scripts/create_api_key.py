#!/usr/bin/env python
"""Create an API key for an external client.

The key is printed once. Only the holder of the printed key can use it;
it cannot be retrieved through the API afterwards.

Usage:
    python backend/scripts/create_api_key.py "Student Portal"
    python backend/scripts/create_api_key.py "Kiosk" --expires 2026-12-31T23:59:59

Environment Variables:
    DATABASE_URL: Database connection string
    API_KEY_PREFIX: Prefix for generated keys (default: sk-)
"""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add backend/src to Python path
backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from sqlalchemy.exc import SQLAlchemyError

from auth.api_keys import ApiKeyAuthenticator
from config import get_settings
from database import SessionLocal


def parse_expires(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime; naive values are taken as UTC"""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid --expires value: {value} (expected ISO-8601)")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a new API key")
    parser.add_argument("name", help="Name of the client the key is issued to")
    parser.add_argument(
        "--expires",
        type=parse_expires,
        default=None,
        help="Expiry as ISO-8601 date or datetime (default: never)",
    )
    return parser


def main(argv=None) -> int:
    """Create the key and print it."""
    args = build_parser().parse_args(argv)

    session = SessionLocal()
    try:
        authenticator = ApiKeyAuthenticator(session)
        api_key = authenticator.create_key(args.name, args.expires, prefix=get_settings().API_KEY_PREFIX)

        print("SUCCESS: API key created")
        print(f"  Name:    {api_key.name}")
        print(f"  Key:     {api_key.key}")
        print(f"  Expires: {api_key.expires_at.strftime('%Y-%m-%d %H:%M:%S') if api_key.expires_at else 'Never'}")
        print("WARNING: Please save this key securely. It will not be shown again.")
        return 0

    except SQLAlchemyError as e:
        session.rollback()
        print(f"ERROR: Failed to create API key: {e}")
        return 1

    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Script to issue an API key without going through the HTTP API.

Usage:
    python scripts/create_api_key.py --name "My App"
    python scripts/create_api_key.py --name "My App" --keys-file /data/apiKeys.json
"""

import asyncio
import argparse
import sys
from pathlib import Path

# Add parent directory to path to import relay modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from relay.config import get_settings
from relay.core.exceptions import KeyStoreError, MissingParameterException
from relay.models.api_key import format_timestamp
from relay.services.api_key_service import issue_api_key
from relay.services.key_store import JsonFileKeyStore


async def main():
    """Main function."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Issue a new API key")
    parser.add_argument(
        "--name",
        required=True,
        help="Name of the application using the key (required)"
    )
    parser.add_argument(
        "--keys-file",
        default=settings.API_KEYS_FILE,
        help=f"API key file (default: {settings.API_KEYS_FILE})"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=settings.API_KEY_LIFETIME_DAYS,
        help=f"Calendar days the key stays valid (default: {settings.API_KEY_LIFETIME_DAYS})"
    )

    args = parser.parse_args()

    store = JsonFileKeyStore(args.keys_file)
    try:
        record = await issue_api_key(store, args.name, lifetime_days=args.days)
    except MissingParameterException as e:
        print(f"Error creating API key: {e.detail}", file=sys.stderr)
        sys.exit(2)
    except KeyStoreError as e:
        print(f"Error creating API key: {e.message}", file=sys.stderr)
        sys.exit(1)

    print("\n" + "=" * 70)
    print("API KEY CREATED SUCCESSFULLY")
    print("=" * 70)
    print(f"Name: {record.name}")
    print(f"Expires: {format_timestamp(record.expires_at)}")
    print(f"Stored in: {store.path}")
    print("-" * 70)
    print(f"\nAPI Key: {record.key}\n")
    print("=" * 70)
    print("Use this key in the X-API-Key header for gated routes.")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    asyncio.run(main())

#!/usr/bin/env python3
"""
Initialize the SQLite key-value store used by the activity status service.

This script creates the kv_entries table.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from activity_status.storage.database import DatabaseManager


def main() -> None:
    """Initialize the database."""
    import argparse

    parser = argparse.ArgumentParser(description="Initialize the activity status database")
    parser.add_argument("--path", help="Database path (defaults to STORE_PATH)")
    parser.add_argument(
        "--drop", action="store_true", help="Drop existing tables before creating new ones"
    )
    args = parser.parse_args()

    with DatabaseManager(db_path=args.path) as db_manager:
        print(f"Initializing database at {db_manager.url}...")
        db_manager.init_db(drop_all=args.drop)
    print("Database initialized successfully!")


if __name__ == "__main__":
    main()

"""Marketplace database management CLI.

Usage:
    python src/manage.py setup-db                 # Create all tables
    python src/manage.py drop-db                  # Drop all tables
    python src/manage.py setup-db --env test      # Use the test overlay
"""

import argparse
import sys

from shared.config import load_settings
from shared.database import create_engine_for, drop_db, setup_db


def main():
    parser = argparse.ArgumentParser(description="Marketplace database management")
    parser.add_argument("--env", help="Config environment (default: $MARKETPLACE_ENV or development)")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()
    settings = load_settings(args.env)
    engine = create_engine_for(settings)

    if args.command == "setup-db":
        print(f"Creating schema on {engine.url.render_as_string(hide_password=True)}...")
        setup_db(engine)
    elif args.command == "drop-db":
        print(f"Dropping schema on {engine.url.render_as_string(hide_password=True)}...")
        drop_db(engine)
    else:
        parser.print_help()
        sys.exit(1)

    print("Done.")


if __name__ == "__main__":
    main()

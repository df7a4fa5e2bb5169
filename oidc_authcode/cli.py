"""CLI commands for database maintenance."""

import argparse
import sys
from typing import NoReturn

from dotenv import load_dotenv
from flask import Flask

from oidc_authcode import create_app
from oidc_authcode.app import App
from oidc_authcode.database import check_db_connection, init_db


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="oidc-authcode CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "init-db",
        help="Create the authorization state table",
    )

    subparsers.add_parser(
        "prune-state",
        help="Delete authorization attempts older than OIDC_STATE_MAX_AGE_SECONDS",
    )

    return parser


def handle_init_db(app: Flask) -> None:
    with app.app_context():
        if not check_db_connection():
            print("Cannot connect to database.", file=sys.stderr)
            sys.exit(1)

        print(f"Using database: {app.config['SQLALCHEMY_DATABASE_URI']}")
        init_db()
        print("Database tables created")


def handle_prune_state(app: App) -> None:
    container = app.container

    with app.app_context():
        if not check_db_connection():
            print("Cannot connect to database.", file=sys.stderr)
            sys.exit(1)

        db_session = container.db_session()
        try:
            count = container.oidc_client_service().prune_expired_attempts()
            db_session.commit()
        except Exception as e:
            db_session.rollback()
            print(f"Pruning failed: {e}", file=sys.stderr)
            sys.exit(1)
        finally:
            db_session.close()
            container.db_session.reset()

        print(f"Pruned {count} stale authorization attempt(s)")


def main() -> NoReturn:
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    app = create_app()

    if args.command == "init-db":
        handle_init_db(app)
    elif args.command == "prune-state":
        handle_prune_state(app)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()

"""Storefront management CLI.

Creates and drops the database schema and runs the periodic maintenance
sweeps. The sweeps are meant to be scheduled externally (cron, K8s CronJob).

Usage:
    python src/manage.py setup-db
    python src/manage.py drop-db
    python src/manage.py sweep-reservations [--grace-minutes N]
    python src/manage.py detect-abandoned-carts [--idle-hours N]
"""

import argparse
import sys


def _domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    domain = _domain()
    print("Creating storefront database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    domain = _domain()
    print("Dropping storefront database schema...")
    drop_db(domain)
    print("Done.")


def sweep_reservations(grace_minutes=None):
    from storefront.operations import release_expired_reservations

    with _domain().domain_context():
        expired = release_expired_reservations(grace_minutes=grace_minutes)
    print(f"Expired {expired} checkout session(s).")


def detect_abandoned_carts(idle_hours):
    from storefront.operations import detect_abandoned_carts as detect

    with _domain().domain_context():
        abandoned = detect(idle_threshold_hours=idle_hours)
    print(f"Marked {abandoned} cart(s) as abandoned.")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    sweep_parser = subparsers.add_parser("sweep-reservations", help="Release stock held by expired checkouts")
    sweep_parser.add_argument(
        "--grace-minutes",
        type=int,
        default=None,
        help="Minutes past expiry before a session is swept (default: RESERVATION_GRACE_MINUTES)",
    )

    abandon_parser = subparsers.add_parser("detect-abandoned-carts", help="Mark idle carts as abandoned")
    abandon_parser.add_argument(
        "--idle-hours",
        type=int,
        default=24,
        help="Hours of inactivity before a cart counts as abandoned (default: 24)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "sweep-reservations":
        sweep_reservations(args.grace_minutes)
    elif args.command == "detect-abandoned-carts":
        detect_abandoned_carts(args.idle_hours)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

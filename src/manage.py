"""Storefront database management CLI.

Usage:
    python src/manage.py setup-db        # Create all tables
    python src/manage.py drop-db         # Drop all tables
    python src/manage.py seed-products   # Load the sample catalogue
    python src/manage.py sync-orders     # Run one reconciliation sweep
"""

import argparse
import sys


def _domain():
    from storefront.domain import storefront

    print("Initializing storefront domain...")
    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    domain = _domain()
    print("Creating storefront database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    domain = _domain()
    print("Dropping storefront database schema...")
    drop_db(domain)
    print("Done.")


def seed_products():
    from storefront.catalogue.seed import seed_products as seed

    domain = _domain()
    with domain.domain_context():
        created = seed()
    print(f"Seeded {len(created)} product(s).")


def sync_orders():
    from storefront.gateway import get_gateway
    from storefront.order.sweeper import sync_pending_orders

    domain = _domain()
    with domain.domain_context():
        report = sync_pending_orders(get_gateway())
    print(f"synced={report.synced} failed={report.failed} skipped={report.skipped}")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed-products", help="Insert the sample product catalogue")
    subparsers.add_parser("sync-orders", help="Reconcile open orders against the payment gateway")

    args = parser.parse_args()

    commands = {
        "setup-db": setup_database,
        "drop-db": drop_database,
        "seed-products": seed_products,
        "sync-orders": sync_orders,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)
    command()


if __name__ == "__main__":
    main()

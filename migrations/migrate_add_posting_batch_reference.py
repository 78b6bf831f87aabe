#!/usr/bin/env python3
"""Migration script to add the posting claim column to lease_calculations.

A posting batch now claims its calculations before it calls the ERP, so two
posters can never send the same calculation. The claim lives in:
- posting_batch_reference (VARCHAR, nullable)

Existing rows start unclaimed. Calculations that were already posted keep
their ERP batch ID in erp_transaction_id.

Usage:
    python migrations/migrate_add_posting_batch_reference.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import ifrs16 modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import text, inspect
from ifrs16.database.factories import create_sqlite_database

TABLE = "lease_calculations"
COLUMN = "posting_batch_reference"


def claim_column_exists(engine) -> bool:
    """Check if lease_calculations already has the claim column."""
    return COLUMN in {column["name"] for column in inspect(engine).get_columns(TABLE)}


def migrate_database(database_path: str | None = None) -> None:
    """Migrate database to add the posting claim column.

    Args:
        database_path: Path to database file. If None, uses default location.

    Raises:
        RuntimeError: If the table is missing
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise RuntimeError("Could not get database engine from session")
        finally:
            session.close()

        if TABLE not in inspect(engine).get_table_names():
            raise RuntimeError(f"Table '{TABLE}' does not exist. Please initialize the database schema first.")

        if claim_column_exists(engine):
            print(f"Migration already applied: {TABLE}.{COLUMN} exists")
            return

        print("Starting migration: adding posting claim column...")
        with engine.begin() as conn:
            conn.execute(text(f"ALTER TABLE {TABLE} ADD COLUMN {COLUMN} VARCHAR(40)"))
        print(f"  Added column: {COLUMN}")
        print("Migration completed successfully!")

    except Exception as e:
        print(f"Migration failed: {e}")
        raise
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate database to add the posting claim column"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides IFRS16_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())

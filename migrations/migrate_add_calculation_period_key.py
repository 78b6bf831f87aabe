#!/usr/bin/env python3
"""Migration script to make lease periods unique in lease_calculations.

Databases created before the uniqueness key existed may hold more than one
calculation for the same lease and period date. This migration adds a unique
index on (lease_id, period_date) so a period can only be calculated once:
- uq_lease_period (UNIQUE INDEX on lease_id, period_date)

The migration refuses to run while duplicate periods exist and lists them;
resolve them by hand (keep the posted one, if any) and run it again.

Usage:
    python migrations/migrate_add_calculation_period_key.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import ifrs16 modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import text, inspect
from ifrs16.database.factories import create_sqlite_database

TABLE = "lease_calculations"
INDEX_NAME = "uq_lease_period"
KEY_COLUMNS = ["lease_id", "period_date"]


def period_key_exists(engine) -> bool:
    """Check if a unique constraint or unique index covers the period key.

    Args:
        engine: SQLAlchemy engine

    Returns:
        True if the key is already enforced, False otherwise
    """
    inspector = inspect(engine)
    for constraint in inspector.get_unique_constraints(TABLE):
        if constraint["column_names"] == KEY_COLUMNS:
            return True
    for index in inspector.get_indexes(TABLE):
        if index.get("unique") and index["column_names"] == KEY_COLUMNS:
            return True
    return False


def find_duplicate_periods(conn) -> list[tuple[int, str, int]]:
    """Find (lease_id, period_date, count) for periods calculated more than once."""
    rows = conn.execute(
        text(
            f"SELECT lease_id, period_date, COUNT(*) FROM {TABLE} "
            "GROUP BY lease_id, period_date HAVING COUNT(*) > 1 "
            "ORDER BY lease_id, period_date"
        )
    )
    return [tuple(row) for row in rows]


def migrate_database(database_path: str | None = None) -> None:
    """Migrate database to add the unique period key.

    Args:
        database_path: Path to database file. If None, uses default location.

    Raises:
        RuntimeError: If the table is missing or duplicate periods exist
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        # Get engine from sessionmaker by creating a session and accessing its bind
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise RuntimeError("Could not get database engine from session")
        finally:
            session.close()

        inspector = inspect(engine)
        if TABLE not in inspector.get_table_names():
            raise RuntimeError(f"Table '{TABLE}' does not exist. Please initialize the database schema first.")

        if period_key_exists(engine):
            print(f"Migration already applied: ({', '.join(KEY_COLUMNS)}) is unique in {TABLE}")
            return

        print("Starting migration: adding unique period key...")

        with engine.begin() as conn:
            duplicates = find_duplicate_periods(conn)
            if duplicates:
                print(f"  Found {len(duplicates)} duplicate lease period(s):")
                for lease_id, period_date, count in duplicates:
                    print(f"    lease {lease_id}, period {period_date}: {count} calculations")
                raise RuntimeError("Duplicate lease periods must be resolved before adding the unique key")

            conn.execute(text(f"CREATE UNIQUE INDEX {INDEX_NAME} ON {TABLE} ({', '.join(KEY_COLUMNS)})"))
            print(f"  Added unique index: {INDEX_NAME}")

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
        description="Migrate database to make lease calculation periods unique"
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

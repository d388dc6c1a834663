"""
Database initialization from a schema file.

This script:
- Registers every table declared in a JSON schema file
- Creates the tables that do not exist yet
- Can reset the database (drop and recreate the declared tables)
- Prints row counts for every declared table

Schema file format:
    {
      "tables": {
        "User": {
          "fields": {"name": {"type": "string", "nullable": false}, "age": "integer"},
          "options": {"timestamps": true}
        }
      }
    }

Usage:
    # Create missing tables
    python -m madatabase.database.init_db schema.json

    # Reset the declared tables (drops them and recreates)
    python -m madatabase.database.init_db schema.json --reset

    # Point at another database file
    python -m madatabase.database.init_db schema.json --storage ./data/app.sqlite
"""

import argparse
import json
import logging
from typing import Any, Dict, Optional

from madatabase.config import get_settings, print_settings
from madatabase.core.exceptions import SchemaError
from madatabase.database.database import Database


def load_schema(path: str) -> Dict[str, Any]:
    """
    Read table declarations from a JSON file.

    Returns:
        Mapping of table name -> {"fields": ..., "options": ...}

    Raises:
        SchemaError: If the file has no "tables" mapping
    """
    with open(path, encoding="utf-8") as f:
        document = json.load(f)

    tables = document.get("tables") if isinstance(document, dict) else None
    if not isinstance(tables, dict):
        raise SchemaError(f"{path}: expected a top-level 'tables' object")
    return tables


def register_tables(db: Database, tables: Dict[str, Any]) -> None:
    """Register every declared table on the database."""
    print("\n📋 Registering tables...")
    for table_name, definition in tables.items():
        definition = definition or {}
        db.create_table(table_name, definition.get("fields", {}), definition.get("options"))
        print(f"  ✅ {table_name}")


def create_tables(db: Database, reset: bool = False) -> bool:
    """
    Create all registered tables.

    Args:
        reset: If True, drop existing tables first
    """
    if reset:
        print("🗑️  Dropping and recreating tables...")
    else:
        print("📊 Creating database tables...")

    ok = db.sync_tables(force=reset)
    print("✅ Tables created" if ok else "❌ Table creation failed")
    return ok


def print_database_status(db: Database) -> None:
    """Print current database status and counts."""
    print("\n" + "=" * 60)
    print("📊 Database Status")
    print("=" * 60)

    for table_name in db.get_tables():
        handle = db.get_model(table_name)
        print(f"  {table_name:<24} {db.count(table_name):>8} rows  ({handle.storage_name})")

    print("=" * 60)


def initialize_database(
    schema_path: str,
    reset: bool = False,
    storage: Optional[str] = None,
) -> bool:
    """
    Initialize the database from a schema file.

    Returns:
        True if every step succeeded
    """
    print("=" * 60)
    print("🗄️  Database Initialization")
    print("=" * 60)

    overrides = {"storage": storage} if storage else {}
    db = Database(**overrides)
    print_settings(db.settings)

    try:
        if not db.connect():
            return False

        register_tables(db, load_schema(schema_path))
        if not create_tables(db, reset=reset):
            return False

        print_database_status(db)
    finally:
        db.close()

    print("\n✅ Database initialization complete!")
    return True


def main(argv=None) -> int:
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Create the tables declared in a schema file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m madatabase.database.init_db schema.json
  python -m madatabase.database.init_db schema.json --reset
  python -m madatabase.database.init_db schema.json --reset --yes
        """
    )

    parser.add_argument("schema", help="Path to the JSON schema file")

    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop the declared tables before creating (WARNING: deletes their data!)"
    )

    parser.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation before a reset"
    )

    parser.add_argument(
        "--storage",
        default=None,
        help="SQLite database file (overrides MADB_STORAGE)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=get_settings().log_level, format="%(levelname)s %(name)s: %(message)s")

    # Confirm reset if requested
    if args.reset and not args.yes:
        print("⚠️  WARNING: This will DELETE ALL DATA in the declared tables!")
        response = input("Are you sure? Type 'yes' to continue: ")
        if response.lower() != 'yes':
            print("❌ Aborted")
            return 1

    try:
        ok = initialize_database(args.schema, reset=args.reset, storage=args.storage)
    except (OSError, ValueError) as e:
        print(f"❌ {e}")
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())

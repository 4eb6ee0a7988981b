import logging
import sys

from sqlalchemy import func, inspect, select

from todo_manager.config import settings
from todo_manager.database import Base, Database
from todo_manager.exceptions import DatabaseError
from todo_manager.schema import SchemaLayout, SchemaManager


def inspect_database(db: Database) -> dict[str, int]:
    """Print the schema layout and per-table row counts; returns the counts."""
    layout = SchemaManager(db).detect_layout()
    print(f"Database: {db.url}")
    print(f"Layout:   {layout.value}")

    counts: dict[str, int] = {}
    if layout is SchemaLayout.FRESH:
        print("No todos table found. Run the application once to create the schema.")
        return counts

    with db.connect() as conn:
        existing = set(inspect(conn).get_table_names())
        for table in Base.metadata.sorted_tables:
            if table.name not in existing:
                print(f"  {table.name:<16} missing")
                continue
            counts[table.name] = conn.execute(
                select(func.count()).select_from(table)
            ).scalar_one()
            print(f"  {table.name:<16} {counts[table.name]} row(s)")

    return counts


def main(url: str | None = None) -> int:
    logging.basicConfig(level=settings.LOG_LEVEL)
    db = Database(url)
    try:
        inspect_database(db)
        return 0
    except DatabaseError as e:
        print(f"Error: {e.user_friendly_message} ({e.cause})")
        return 1
    finally:
        db.dispose()


if __name__ == "__main__":
    sys.exit(main(sys.argv[1] if len(sys.argv) > 1 else None))

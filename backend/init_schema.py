#!/usr/bin/env python3
"""
Initialize the document schema in the configured database.

Creates the ``documents`` table if it does not exist. Works against both
PostgreSQL (DATABASE_URL in .env) and the default local SQLite file.

Usage:
    source venv/bin/activate
    python backend/init_schema.py
"""

import sys
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import SQLAlchemyError

# Load .env from the repository root before settings are read
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

from app.config import settings  # noqa: E402
from app.db import DocumentRecord, get_engine, get_session_factory, init_schema  # noqa: E402


def main():
    """Create tables and print what the database now holds."""
    print("Connecting to database...")
    print(f"Using database at: {settings.database_host}")

    try:
        init_schema()
        tables = inspect(get_engine()).get_table_names()

        print("\n" + "=" * 60)
        print("SUCCESS: document schema created!")
        print("=" * 60)
        print("\nTables:")
        for table in tables:
            print(f"  - {table}")

        with get_session_factory()() as session:
            count = session.scalar(select(func.count()).select_from(DocumentRecord))
            kinds = session.scalars(select(DocumentRecord.kind).order_by(DocumentRecord.id)).all()
        print(f"\nStored documents: {count}")
        for kind in kinds:
            print(f"  - {kind}")
    except SQLAlchemyError as e:
        print(f"\nERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

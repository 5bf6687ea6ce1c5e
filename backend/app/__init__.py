"""
Protocol extraction backend.

This package provides the REST persistence layer for the protocol dashboard:
- Protocol JSON upload with embedded-JSON normalization
- Single-latest-document storage for five document kinds
- Seed defaults for roles, inventory and drug ordering
- PostgreSQL or SQLite persistence through SQLAlchemy
"""

__version__ = "1.0.0"

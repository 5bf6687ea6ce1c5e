#!/usr/bin/env python3
"""
Seed the configured database with the document defaults.

Writes the defaults from app/document_defaults.yaml for every document kind
that has none stored yet. Kinds that already hold a document are left alone
unless --force is given.

Usage:
    python backend/scripts/seed_defaults.py

    # Show what would be written
    python backend/scripts/seed_defaults.py --dry-run

    # Overwrite stored documents with the defaults
    python backend/scripts/seed_defaults.py --force
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.db import get_session_factory, init_schema
from app.document_registry import get_defaults, get_document_slugs
from app.services.document_store import DocumentStore, DocumentStoreError, SqlDocumentStore

import logging

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def seed(store: DocumentStore, force: bool = False, dry_run: bool = False) -> int:
    """
    Write defaults for kinds without a stored document.

    Returns:
        Number of documents written (or that would be written on a dry run).
    """
    written = 0
    for slug in get_document_slugs():
        defaults = get_defaults(slug)
        if defaults is None:
            continue
        existing = store.load(slug)
        if existing is not None and not force:
            logger.info(f"✓ {slug} already stored (version {existing.version}), skipping")
            continue
        if dry_run:
            logger.info(f"→ Would seed {slug}")
        else:
            saved = store.save(slug, defaults)
            logger.info(f"✓ Seeded {slug} (version {saved.version})")
        written += 1
    return written


def main():
    parser = argparse.ArgumentParser(description="Seed document defaults")
    parser.add_argument("--dry-run", action="store_true", help="Don't modify database")
    parser.add_argument("--force", action="store_true", help="Overwrite stored documents")
    args = parser.parse_args()

    init_schema()
    store = SqlDocumentStore(get_session_factory())
    try:
        written = seed(store, force=args.force, dry_run=args.dry_run)
    except DocumentStoreError as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)

    logger.info(f"Done: {written} document(s) {'to seed' if args.dry_run else 'seeded'}")


if __name__ == "__main__":
    main()

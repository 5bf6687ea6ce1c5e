#!/usr/bin/env python3
"""
Export the latest document of every kind to JSON files.

Usage:
    python backend/scripts/export_documents.py --output-dir exports/
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.db import get_session_factory
from app.services.document_store import DocumentStore, SqlDocumentStore

import logging

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def export_documents(store: DocumentStore, output_dir: Path) -> list:
    """Write ``<kind>.json`` for each stored kind and return the paths written."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for kind in store.kinds():
        document = store.load(kind)
        if document is None:
            continue
        path = output_dir / f"{kind}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info(f"✓ {kind} (version {document.version}) -> {path}")
        written.append(path)
    return written


def main():
    parser = argparse.ArgumentParser(description="Export stored documents to JSON")
    parser.add_argument("--output-dir", type=Path, default=Path("exports"), help="Directory for the JSON files")
    args = parser.parse_args()

    written = export_documents(SqlDocumentStore(get_session_factory()), args.output_dir)
    if not written:
        logger.warning("No documents stored, nothing exported")
    else:
        logger.info(f"Exported {len(written)} document(s) to {args.output_dir}")


if __name__ == "__main__":
    main()

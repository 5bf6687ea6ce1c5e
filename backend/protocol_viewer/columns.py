"""
Column inference for arrays of records.

Sections whose name looks like a visit schedule always get the fixed visit
columns, whatever keys the rows carry. Everything else derives its columns
from the rows themselves.
"""

import re
from typing import Any, Iterable, List, Optional

VISIT_SCHEDULE_COLUMNS = ["Visit", "VisitWeek", "VisitType", "VisitCalculatedFrom", "KitType"]

VISIT_SCHEDULE_ALIASES = {"visitschedule", "visitschedules", "visit_schedule"}

_WHITESPACE = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"\D")


def normalize_section_key(section_key: Optional[str]) -> str:
    """Lower-case ``section_key`` and remove all whitespace."""
    return _WHITESPACE.sub("", (section_key or "").lower())


def columns_for_key(section_key: Optional[str]) -> Optional[List[str]]:
    """
    Fixed column list forced by the section name, if any.

    Returns:
        A fresh copy of VISIT_SCHEDULE_COLUMNS for visit-schedule-like keys,
        otherwise None (columns come from the rows).
    """
    key = normalize_section_key(section_key)
    if ("visit" in key and "schedule" in key) or key in VISIT_SCHEDULE_ALIASES:
        return list(VISIT_SCHEDULE_COLUMNS)
    return None


def infer_columns(rows: Iterable[Any]) -> List[str]:
    """
    Ordered union of the keys of every dict in ``rows``.

    Purely numeric keys (array-index-like) are dropped when at least one key
    with a non-digit character exists. Non-dict rows are ignored.
    """
    seen = {}
    for row in rows:
        if isinstance(row, dict):
            for key in row:
                seen.setdefault(str(key), None)
    columns = list(seen)

    named = [c for c in columns if _NON_DIGIT.search(c)]
    if named and len(named) < len(columns):
        return named
    return columns


def columns_for(section_key: Optional[str], rows: List[Any]) -> List[str]:
    """Forced columns for ``section_key`` or the columns inferred from ``rows``."""
    forced = columns_for_key(section_key)
    if forced is not None:
        return forced
    return infer_columns(rows)

"""
Header alias resolution.

Worksheet authors name their columns however they like ("Job No", "Job #",
"Supervisor"). This module maps those headers onto the small canonical field
set the reconciliation engine understands.

Rules:
    - Headers are normalized: trimmed, lower-cased, internal whitespace
      collapsed to one space.
    - Unknown headers are dropped silently; worksheets carry plenty of
      unrelated columns.
    - First occurrence wins: when two columns map to the same canonical
      field, the leftmost one is used and later ones are ignored.

Examples:
    >>> resolve_headers(["Job No", "Job Name", "Supervisor", "Notes"])
    {'job_number': 0, 'site_name': 1, 'manager_name': 2}
    >>> resolve_headers(["Job #", "Job", "Project"])
    {'job_number': 0, 'site_name': 2}
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

_WHITESPACE = re.compile(r"\s+")

# Canonical field names
JOB_NUMBER = "job_number"
SITE_NAME = "site_name"
CLIENT = "client"
MANAGER_NAME = "manager_name"
SUPPLIER_NAME = "supplier_name"
SPECS_RECEIVED = "specs_received"

CANONICAL_FIELDS = (
    JOB_NUMBER,
    SITE_NAME,
    CLIENT,
    MANAGER_NAME,
    SUPPLIER_NAME,
    SPECS_RECEIVED,
)

# Normalized header text -> canonical field
HEADER_ALIASES: dict[str, str] = {
    # job_number
    "job": JOB_NUMBER,
    "job number": JOB_NUMBER,
    "job nr": JOB_NUMBER,
    "job no": JOB_NUMBER,
    "job no.": JOB_NUMBER,
    "job #": JOB_NUMBER,
    "job#": JOB_NUMBER,
    # site_name
    "job name": SITE_NAME,
    "site name": SITE_NAME,
    "site": SITE_NAME,
    "project": SITE_NAME,
    "project name": SITE_NAME,
    # client
    "client": CLIENT,
    "company": CLIENT,
    # manager_name
    "supervis": MANAGER_NAME,
    "supervisor": MANAGER_NAME,
    "manager": MANAGER_NAME,
    "manager name": MANAGER_NAME,
    # supplier_name (carried, never resolved)
    "supplier": SUPPLIER_NAME,
    "supplier name": SUPPLIER_NAME,
    # specs_received
    "specsrecieved": SPECS_RECEIVED,
    "specs received": SPECS_RECEIVED,
}


def normalize_header(value: Any) -> str:
    """Trim, lower-case and collapse whitespace; ``None`` becomes ``""``."""
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value).strip().lower())


def canonical_field(header: Any) -> str | None:
    """Canonical field for a single header, or ``None`` if unknown."""
    return HEADER_ALIASES.get(normalize_header(header))


def resolve_headers(headers: Iterable[Any]) -> dict[str, int]:
    """Map canonical field name -> column index, first occurrence wins."""
    header_map: dict[str, int] = {}
    for idx, header in enumerate(headers):
        field = canonical_field(header)
        if field is not None and field not in header_map:
            header_map[field] = idx
    return header_map


__all__ = [
    "JOB_NUMBER",
    "SITE_NAME",
    "CLIENT",
    "MANAGER_NAME",
    "SUPPLIER_NAME",
    "SPECS_RECEIVED",
    "CANONICAL_FIELDS",
    "HEADER_ALIASES",
    "normalize_header",
    "canonical_field",
    "resolve_headers",
]

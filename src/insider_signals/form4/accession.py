"""Accession number helpers."""

from __future__ import annotations

import re

_DASHED = re.compile(r"^(\d{10})-(\d{2})-(\d{6})$")
_COMPACT = re.compile(r"^(\d{10})(\d{2})(\d{6})$")
_IN_URL = re.compile(r"(\d{10}-\d{2}-\d{6})|/(\d{18})(?:/|$)")
_IN_ENTRY_ID = re.compile(r"accession-number=([^&,\s]+)")


def normalize_accession_number(value: str) -> str:
    """Return the canonical dashed form ``0001234567-25-000123``.

    Accepts the dashed form or the 18-digit compact form used in EDGAR
    archive paths.

    Raises:
        ValueError: If the value is not an accession number
    """
    s = value.strip()
    m = _DASHED.match(s) or _COMPACT.match(s)
    if m is None:
        raise ValueError(f"Invalid accession number: {value!r}")
    return "-".join(m.groups())


def accession_from_url(url: str, entry_id: str | None = None) -> str | None:
    """Find the accession number in an EDGAR feed entry id or archive URL."""
    if entry_id:
        m = _IN_ENTRY_ID.search(entry_id)
        if m:
            try:
                return normalize_accession_number(m.group(1))
            except ValueError:
                pass
    m = _IN_URL.search(url)
    if m is None:
        return None
    return normalize_accession_number(m.group(1) or m.group(2))

"""Canonical cache keys for search parameter sets."""
from __future__ import annotations

import re

from supplier_scraper.tasks.search_payloads import SearchParams

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def sanitize_code(value: str) -> str:
    return _NON_ALNUM.sub("", value or "")


def canonicalize(params: SearchParams) -> str:
    """Build the deterministic key a search is cached under.

    Market codes are reduced to their alphanumerics, so ``"AT-L "`` and
    ``"ATL"`` address the same entry. Child counts only appear when some
    room has children; child ages only when they were supplied.
    """
    parts = [
        sanitize_code(params.origin),
        sanitize_code(params.destination),
        params.check_in,
        params.check_out,
        str(params.rooms),
        "-".join(str(adults) for adults in params.adults_per_room),
    ]
    if params.has_children:
        parts.append("-".join(str(children) for children in params.children_per_room))
    if params.has_children and params.child_ages:
        parts.append(
            "_".join(
                "-".join(str(age) for age in params.ages_for_room(room))
                for room in range(params.rooms)
            )
        )
    return "_".join(parts)

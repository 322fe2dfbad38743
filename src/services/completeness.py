from __future__ import annotations

from typing import Any

PROFILE_FIELDS: tuple[str, ...] = ("description", "programs", "achievements", "website")


def profile_completeness(school: Any) -> int:
    """Return the share of enrichment fields a school has filled in, as 0-100.

    A field counts when it is not ``None`` and not blank after stripping.
    """
    filled = 0
    for field in PROFILE_FIELDS:
        value = getattr(school, field, None)
        if value is not None and str(value).strip():
            filled += 1
    return round(filled / len(PROFILE_FIELDS) * 100)

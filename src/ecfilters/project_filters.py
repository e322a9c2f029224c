"""Conversions for a project's embedded ``traffic_filters`` list.

The API stores a project's filters as a list of ``{"id": ...}`` objects.
Callers work with plain filter ids. The list is a set in disguise:
duplicates are dropped and order is only preserved to keep writes stable.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def filter_ids(filters: Iterable[dict[str, Any]] | None) -> list[str]:
    """Ordered, de-duplicated filter ids from an API list ([] for None)."""
    if not filters:
        return []
    return list(dict.fromkeys(f["id"] for f in filters if f.get("id")))


def filters_payload(ids: Iterable[str]) -> list[dict[str, str]]:
    """API list for a set of filter ids, always a list (possibly empty)."""
    return [{"id": filter_id} for filter_id in dict.fromkeys(ids)]


def traffic_filters_from_ids(ids: Iterable[str] | None) -> list[dict[str, str]] | None:
    """API value for a project's declared ``traffic_filters`` attribute.

    An unset or empty declaration omits the field (None) so the project
    keeps whatever the server has.
    """
    if ids is None:
        return None
    payload = filters_payload(ids)
    return payload or None


def traffic_filters_to_ids(filters: Iterable[dict[str, Any]] | None) -> frozenset[str] | None:
    """Tracked value of a project's ``traffic_filters`` attribute.

    Missing and empty lists both map to None (attribute not set).
    """
    ids = filter_ids(filters)
    if not ids:
        return None
    return frozenset(ids)

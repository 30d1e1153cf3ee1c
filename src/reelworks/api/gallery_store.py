"""Gallery listing helpers for the Reel-Works API.

The gallery itself is a plain list of
:class:`~reelworks.core.models.GalleryEntry` objects owned by the API layer
and front-inserted by the controller, so it is always in reverse-chronological
order (newest first).  Nothing is persisted.

This module keeps the filtering and pagination rules out of
``reelworks.api.main`` so route handlers can focus on HTTP concerns.
"""

from __future__ import annotations

from reelworks.core.models import ArtifactKind, GalleryEntry


def filter_gallery_entries(
    entries: list[GalleryEntry],
    *,
    kind: ArtifactKind | None = None,
) -> list[GalleryEntry]:
    """Apply the media-kind filter to gallery entries.

    Args:
        entries: Source gallery entries.
        kind: Optional media kind to keep.

    Returns:
        Filtered gallery entries in their original order.
    """
    if kind is None:
        return list(entries)
    return [entry for entry in entries if entry.kind == kind]


def paginate_gallery_entries(entries: list[GalleryEntry], page: int, per_page: int) -> dict:
    """Paginate gallery entries and clamp the requested page to valid bounds.

    Args:
        entries: Filtered gallery entries.
        page: Requested one-based page number.
        per_page: Requested items per page.

    Returns:
        Dictionary containing ``total``, ``page``, ``per_page``, ``pages``, and
        ``items`` (serialised entries) for the resolved page.
    """
    per_page = max(per_page, 1)
    total = len(entries)
    pages = (total + per_page - 1) // per_page if total > 0 else 1
    resolved_page = min(max(page, 1), pages)

    start = (resolved_page - 1) * per_page
    end = start + per_page

    return {
        "total": total,
        "page": resolved_page,
        "per_page": per_page,
        "pages": pages,
        "items": [entry.to_dict() for entry in entries[start:end]],
    }

"""Pure data models for site rollups. No I/O."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ContentItem(BaseModel):
    """Metadata extracted from one generated page."""

    model_config = ConfigDict(frozen=True)

    slug: str
    title: str = ""
    description: str = ""
    category: str = ""
    published_date: str = ""
    modified_date: str = ""
    read_time: int | None = None
    image_alt: str = ""
    git_timestamp: int = 0
    created_timestamp: int = 0


def sort_items(items: list[ContentItem]) -> list[ContentItem]:
    """Newest published first, then newest created, then slug A→Z.

    This is the single ordering used for the index and the homepage.
    ISO dates are fixed width, so plain string comparison orders them.
    """
    # stable sorts, least significant key first
    ordered = sorted(items, key=lambda i: i.slug)
    ordered.sort(key=lambda i: i.created_timestamp, reverse=True)
    ordered.sort(key=lambda i: i.published_date, reverse=True)
    return ordered


class SyncResult(BaseModel):
    """What one synchronization pass changed on disk."""

    items: int = 0
    index_updated: bool = False
    home_updated: bool = False
    sitemap_written: bool = False
    nav_files_changed: int = 0

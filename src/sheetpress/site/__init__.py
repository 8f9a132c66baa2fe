"""Site rollups: metadata extraction, marker regions, index/home/sitemap sync."""

from sheetpress.site.contact import sync_contact
from sheetpress.site.extractor import extract_all, extract_item
from sheetpress.site.markers import MarkedDocument, RegionMarkers
from sheetpress.site.models import ContentItem, SyncResult, sort_items
from sheetpress.site.nav import ensure_nav_links, sync_nav
from sheetpress.site.rollups import (
    HOME_CARD_LIMIT,
    render_home_cards,
    render_index_cards,
    render_sitemap,
    synchronize,
)

__all__ = [
    "HOME_CARD_LIMIT",
    "ContentItem",
    "MarkedDocument",
    "RegionMarkers",
    "SyncResult",
    "ensure_nav_links",
    "extract_all",
    "extract_item",
    "render_home_cards",
    "render_index_cards",
    "render_sitemap",
    "sort_items",
    "sync_contact",
    "sync_nav",
    "synchronize",
]

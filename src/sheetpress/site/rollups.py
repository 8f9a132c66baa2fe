"""Rollup synthesis: blog index cards, homepage top-3 cards, and sitemap.

All three views are recomputed from scratch out of the extracted
ContentItems on every pass. Writes are skipped when the rendered content
is byte-identical to what is on disk, so repeated runs are no-ops.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import date
from pathlib import Path

from sheetpress.config import RunContext, SiteConfig
from sheetpress.core import write_if_changed
from sheetpress.errors import MarkerMissingError, NoContentError
from sheetpress.git import GitRepo
from sheetpress.site.extractor import extract_all
from sheetpress.site.markers import MarkedDocument, RegionMarkers
from sheetpress.site.models import ContentItem, SyncResult
from sheetpress.site.nav import sync_nav

logger = logging.getLogger(__name__)

BLOG_SECTION = "blog"
BLOG_INDEX_PATH = Path("blog") / "index.html"
HOME_PATH = Path("index.html")
SITEMAP_PATH = Path("sitemap.xml")

BLOG_INDEX_MARKERS = RegionMarkers.named("BLOG_INDEX_CARDS")
HOME_MARKERS = RegionMarkers.named("HOME_BLOG_CARDS")

HOME_CARD_LIMIT = 3
INDEX_EXCERPT_CHARS = 165
HOME_EXCERPT_CHARS = 120

CLOCK_SVG = (
    '<svg width="14" height="14" viewBox="0 0 24 24" fill="none" stroke="currentColor" '
    'stroke-width="2"><circle cx="12" cy="12" r="10"/><polyline points="12 6 12 12 16 14"/></svg>'
)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_YMD_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def escape(text: str | None) -> str:
    """Escape ``& < > " '`` for interpolation into HTML text or attributes."""
    return html.escape(text or "", quote=True)


def clamp_text(text: str | None, max_len: int) -> str:
    """Collapse whitespace and cut to ``max_len`` on a word boundary, adding "…"."""
    t = re.sub(r"\s+", " ", (text or "").strip())
    if len(t) <= max_len:
        return t
    clipped = re.sub(r"\s+\S*$", "", t[:max_len])
    return f"{clipped}…"


def format_date_short(ymd: str) -> str:
    """``2026-01-05`` → ``Jan 5, 2026``; "" for anything else."""
    m = _YMD_RE.match(ymd or "")
    if not m:
        return ""
    try:
        d = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return ""
    return f"{_MONTHS[d.month - 1]} {d.day}, {d.year}"


def _read_label(item: ContentItem) -> str:
    return f"{item.read_time} min read" if item.read_time else ""


# ---------------------------------------------------------------------------
# Card renderers
# ---------------------------------------------------------------------------


def render_index_cards(items: list[ContentItem]) -> str:
    """One card per item, in the order given."""
    cards = []
    for item in items:
        href = f"/blog/{item.slug}/"
        excerpt = clamp_text(item.description, INDEX_EXCERPT_CHARS)
        cards.append(
            "\n".join(
                [
                    '          <article class="blog-card">',
                    f'            <a href="{href}" class="blog-card__image-link">',
                    f'              <img src="/images/blog/{escape(item.slug)}-cover.webp" '
                    f'alt="{escape(item.image_alt)}" class="blog-card__image" '
                    'width="600" height="315" loading="lazy">',
                    "            </a>",
                    '            <div class="blog-card__content">',
                    '              <span class="blog-card__category">'
                    f"{escape(item.category)}</span>",
                    f'              <h2 class="blog-card__title"><a href="{href}">'
                    f"{escape(item.title)}</a></h2>",
                    f'              <p class="blog-card__excerpt">{escape(excerpt)}</p>',
                    '              <div class="blog-card__meta">',
                    "                <span>"
                    f"{escape(format_date_short(item.published_date))}</span>",
                    '                <span class="blog-card__read-time">',
                    f"                  {CLOCK_SVG}",
                    f"                  {escape(_read_label(item))}",
                    "                </span>",
                    "              </div>",
                    "            </div>",
                    "          </article>",
                ]
            )
        )
    return "\n\n".join(cards)


def render_home_cards(items: list[ContentItem]) -> str:
    """Cards for the first :data:`HOME_CARD_LIMIT` items only."""
    cards = []
    for item in items[:HOME_CARD_LIMIT]:
        href = f"/blog/{item.slug}/"
        excerpt = clamp_text(item.description, HOME_EXCERPT_CHARS)
        cards.append(
            "\n".join(
                [
                    '          <article class="blog-section__card">',
                    f'            <a href="{href}" class="blog-section__card-image-link">',
                    f'              <img src="/images/blog/{escape(item.slug)}-cover.webp" '
                    f'alt="{escape(item.image_alt)}" class="blog-section__card-img" '
                    'width="600" height="315" loading="lazy">',
                    "            </a>",
                    '            <div class="blog-section__card-content">',
                    f'              <span class="blog-section__card-category">'
                    f"{escape(item.category)}</span>",
                    '              <h3 class="blog-section__card-title">',
                    f'                <a href="{href}">{escape(item.title)}</a>',
                    "              </h3>",
                    f'              <p class="blog-section__card-excerpt">{escape(excerpt)}</p>',
                    '              <div class="blog-section__card-meta">',
                    f"                <span>{escape(_read_label(item))}</span>",
                    "              </div>",
                    "            </div>",
                    "          </article>",
                ]
            )
        )
    return "\n\n".join(cards)


def render_sitemap(items: list[ContentItem], site: SiteConfig, today: str) -> str:
    """Full sitemap: fixed top-level pages plus one entry per item."""
    urls: list[tuple[str, str, str, str]] = [
        (site.url("/"), today, "weekly", "1.0"),
        (site.url("/blog/"), today, "daily", "0.9"),
        (site.url("/contact/"), today, "monthly", "0.7"),
    ]
    for item in items:
        lastmod = item.modified_date or item.published_date or today
        urls.append((site.url(f"/blog/{item.slug}/"), lastmod, "monthly", "0.8"))

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for loc, lastmod, changefreq, priority in urls:
        lines.extend(
            [
                "  <url>",
                f"    <loc>{escape(loc)}</loc>",
                f"    <lastmod>{escape(lastmod)}</lastmod>",
                f"    <changefreq>{changefreq}</changefreq>",
                f"    <priority>{priority}</priority>",
                "  </url>",
            ]
        )
    lines.extend(["</urlset>", ""])
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Region rewrite
# ---------------------------------------------------------------------------


def rewrite_region(path: Path, markers: RegionMarkers, body: str) -> bool:
    """Replace the marker region of the file at ``path`` with ``body``.

    Returns:
        True if the file changed on disk.

    Raises:
        MarkerMissingError: If the file or either marker is missing.
    """
    if not path.is_file():
        raise MarkerMissingError(markers.start.strip(), reason=f"Missing document {path}")
    current = path.read_text(encoding="utf-8", errors="replace")
    updated = MarkedDocument.parse(current, markers).fill(body)
    return write_if_changed(path, updated)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def synchronize(ctx: RunContext, *, git: GitRepo | None = None) -> SyncResult:
    """Recompute index, homepage and sitemap from the pages on disk.

    Raises:
        NoContentError: No blog pages were found.
        MarkerMissingError: The index or homepage lacks its markers.
    """
    root = ctx.root
    result = SyncResult(nav_files_changed=sync_nav(root))

    items = extract_all(root, git=git, section=BLOG_SECTION, site_name=ctx.config.site.name)
    if not items:
        raise NoContentError(f"No blog posts found under {BLOG_SECTION}/*/index.html")
    result.items = len(items)

    blog_index = root / BLOG_INDEX_PATH
    if blog_index.exists():
        result.index_updated = rewrite_region(
            blog_index, BLOG_INDEX_MARKERS, render_index_cards(items)
        )
        if result.index_updated:
            logger.info("updated: %s", BLOG_INDEX_PATH)

    result.home_updated = rewrite_region(root / HOME_PATH, HOME_MARKERS, render_home_cards(items))
    if result.home_updated:
        logger.info("updated: %s (#blog cards)", HOME_PATH)

    sitemap = render_sitemap(items, ctx.config.site, ctx.today_iso)
    result.sitemap_written = write_if_changed(root / SITEMAP_PATH, sitemap)
    if result.sitemap_written:
        logger.info("updated: %s (%d urls)", SITEMAP_PATH, len(items) + 3)

    return result

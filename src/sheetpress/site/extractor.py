"""Content metadata extraction from generated pages on disk.

Every field is best-effort: a prioritized list of patterns is tried in
order and the first non-empty match wins. Missing fields degrade to a
fallback, never to an exception.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from sheetpress.git import GitRepo
from sheetpress.site.models import ContentItem, sort_items

logger = logging.getLogger(__name__)

ARTIFACT_NAME = "index.html"
DEFAULT_CATEGORY = "Blog"


def _meta(attr: str, name: str) -> re.Pattern[str]:
    return re.compile(rf'<meta\s+{attr}="{re.escape(name)}"\s+content="([^"]+)"\s*/?>', re.M)


_H1_TITLE_RE = re.compile(r'<h1[^>]*class="blog-header__title"[^>]*>([\s\S]*?)</h1>', re.M)
_OG_TITLE_RE = _meta("property", "og:title")
_TITLE_TAG_RE = re.compile(r"<title>([\s\S]*?)</title>", re.M)
_DESCRIPTION_RE = _meta("name", "description")
_OG_DESCRIPTION_RE = _meta("property", "og:description")
_SECTION_RE = _meta("property", "article:section")
_PUBLISHED_RE = _meta("property", "article:published_time")
_MODIFIED_RE = _meta("property", "article:modified_time")
_READ_TIME_RE = re.compile(r"(\d+)\s*min read", re.I)
_OG_IMAGE_ALT_RE = _meta("property", "og:image:alt")


def extract_first(html: str, pattern: re.Pattern[str]) -> str:
    """First capture group of ``pattern`` in ``html``, stripped; "" if no match."""
    m = pattern.search(html)
    return (m.group(1) or "").strip() if m else ""


def first_of(html: str, *patterns: re.Pattern[str]) -> str:
    for pattern in patterns:
        value = extract_first(html, pattern)
        if value:
            return value
    return ""


def _strip_site_suffix(title: str, site_name: str) -> str:
    if not site_name:
        return title
    return re.sub(rf"\s*\|\s*{re.escape(site_name)}\s*$", "", title, flags=re.I)


def extract_item(
    html: str,
    slug: str,
    *,
    site_name: str = "",
    section: str = "blog",
) -> ContentItem:
    """Parse one page's metadata. Timestamps are left at 0 for the caller."""
    title = first_of(html, _H1_TITLE_RE, _OG_TITLE_RE) or _strip_site_suffix(
        extract_first(html, _TITLE_TAG_RE), site_name
    )
    description = first_of(html, _DESCRIPTION_RE, _OG_DESCRIPTION_RE)
    category = extract_first(html, _SECTION_RE) or DEFAULT_CATEGORY
    published = extract_first(html, _PUBLISHED_RE)
    modified = extract_first(html, _MODIFIED_RE) or published
    read_time = extract_first(html, _READ_TIME_RE)

    cover_re = re.compile(
        rf'<img\s+[^>]*src="/images/{re.escape(section)}/{re.escape(slug)}-cover\.webp"'
        r'[^>]*alt="([^"]*)"',
        re.M,
    )
    image_alt = first_of(html, cover_re, _OG_IMAGE_ALT_RE) or f"{title} cover image"

    return ContentItem(
        slug=slug,
        title=title,
        description=description,
        category=category,
        published_date=published,
        modified_date=modified,
        read_time=int(read_time) if read_time else None,
        image_alt=image_alt,
    )


def _fs_timestamps(path: Path) -> tuple[int, int]:
    stat = path.stat()
    mtime = int(stat.st_mtime)
    birth = int(getattr(stat, "st_birthtime", 0) or stat.st_mtime)
    return mtime, birth


def extract_all(
    content_root: Path,
    *,
    git: GitRepo | None = None,
    section: str = "blog",
    site_name: str = "",
) -> list[ContentItem]:
    """Extract one ContentItem per ``<section>/<slug>/index.html`` under the root.

    Git commit times are preferred for the tie-break timestamps; paths with
    no history (freshly generated, uncommitted) fall back to filesystem
    modify/birth times.

    Returns:
        Items in the canonical sort order.
    """
    section_dir = content_root / section
    if not section_dir.is_dir():
        return []

    items: list[ContentItem] = []
    for entry in sorted(section_dir.iterdir()):
        if not entry.is_dir():
            continue
        page = entry / ARTIFACT_NAME
        if not page.is_file():
            continue

        slug = entry.name
        rel_path = f"{section}/{slug}/{ARTIFACT_NAME}"
        html = page.read_text(encoding="utf-8", errors="replace")
        item = extract_item(html, slug, site_name=site_name, section=section)

        fs_mtime, fs_birth = _fs_timestamps(page)
        git_ts = git.last_commit_time(rel_path) if git else 0
        created_ts = git.first_added_time(rel_path) if git else 0
        if not git_ts:
            logger.debug("No git history for %s, using filesystem times", rel_path)

        items.append(
            item.model_copy(
                update={
                    "git_timestamp": git_ts or fs_mtime,
                    "created_timestamp": created_ts or fs_birth,
                }
            )
        )

    return sort_items(items)

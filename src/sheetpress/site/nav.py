"""Keep the site-wide Roadmaps and Contact links present in every page's menus."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path

from sheetpress.core import write_if_changed

logger = logging.getLogger(__name__)

_FIXED_PAGES = (
    Path("index.html"),
    Path("blog") / "index.html",
    Path("contact") / "index.html",
    Path("roadmaps") / "index.html",
    Path("templates") / "blog-post.html",
    Path("templates") / "landing-page.html",
)
_SECTIONS = ("blog", "roadmaps")

_DESKTOP_MENU_RE = re.compile(r'<ul class="header__menu">([\s\S]*?)</ul>', re.M)
_MOBILE_MENU_RE = re.compile(r'<ul class="header__mobile-menu-list">([\s\S]*?)</ul>', re.M)
_DESKTOP_BLOG_RE = re.compile(
    r'<li><a href="/blog/" class="header__link(?:\s+active)?">Blog</a></li>'
)
_MOBILE_BLOG_RE = re.compile(r'<li><a href="/blog/" class="header__mobile-link">Blog</a></li>')


def list_pages(root: Path) -> list[Path]:
    """Repo-relative HTML pages whose navigation is kept in sync."""
    pages = list(_FIXED_PAGES)
    for section in _SECTIONS:
        section_dir = root / section
        if section_dir.is_dir():
            pages.extend(
                Path(section) / d.name / "index.html"
                for d in sorted(section_dir.iterdir())
                if d.is_dir()
            )
    return [p for p in pages if (root / p).is_file()]


def _patch_menu(html: str, menu_re: re.Pattern[str], patch: Callable[[str], str]) -> str:
    match = menu_re.search(html)
    if not match:
        return html
    menu = match.group(0)
    patched = patch(menu)
    if patched == menu:
        return html
    return html.replace(menu, patched, 1)


def _after_blog(blog_re: re.Pattern[str], injection: str, href: str) -> Callable[[str], str]:
    def patch(menu: str) -> str:
        if f'href="{href}"' in menu or not blog_re.search(menu):
            return menu
        return blog_re.sub(lambda m: m.group(0) + injection, menu, count=1)

    return patch


def _append(injection: str, closing: str, href: str) -> Callable[[str], str]:
    def patch(menu: str) -> str:
        if f'href="{href}"' in menu:
            return menu
        return menu.replace("</ul>", f"{injection}\n{closing}</ul>", 1)

    return patch


_PATCHES: list[tuple[re.Pattern[str], Callable[[str], str]]] = [
    (
        _DESKTOP_MENU_RE,
        _after_blog(
            _DESKTOP_BLOG_RE,
            '\n          <li><a href="/roadmaps/" class="header__link">Roadmaps</a></li>',
            "/roadmaps/",
        ),
    ),
    (
        _DESKTOP_MENU_RE,
        _append(
            '\n          <li><a href="/contact/" class="header__link">Contact</a></li>',
            "        ",
            "/contact/",
        ),
    ),
    (
        _MOBILE_MENU_RE,
        _after_blog(
            _MOBILE_BLOG_RE,
            '\n        <li><a href="/roadmaps/" class="header__mobile-link">Roadmaps</a></li>',
            "/roadmaps/",
        ),
    ),
    (
        _MOBILE_MENU_RE,
        _append(
            '\n        <li><a href="/contact/" class="header__mobile-link">Contact</a></li>',
            "      ",
            "/contact/",
        ),
    ),
]


def ensure_nav_links(html: str) -> str:
    """Return ``html`` with any missing Roadmaps/Contact menu items added."""
    for menu_re, patch in _PATCHES:
        html = _patch_menu(html, menu_re, patch)
    return html


def sync_nav(root: Path) -> int:
    """Patch every known page's menus in place.

    Returns:
        Number of files changed.
    """
    pages = list_pages(root)
    changed = 0
    for rel_path in pages:
        path = root / rel_path
        before = path.read_text(encoding="utf-8", errors="replace")
        if write_if_changed(path, ensure_nav_links(before)):
            changed += 1
            logger.info("nav updated: %s", rel_path)
    logger.debug("nav sync done. files changed: %d/%d", changed, len(pages))
    return changed

"""Shared fixtures: a minimal static site on disk and a fast-retry run context."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from helpers import BLOG_INDEX_HTML, HOME_HTML, post_html

from sheetpress.config import RunContext, SheetpressConfig
from sheetpress.retry import RetryPolicy


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """A site with a homepage and blog index carrying their card markers."""
    (tmp_path / "index.html").write_text(HOME_HTML, encoding="utf-8")
    (tmp_path / "blog").mkdir()
    (tmp_path / "blog" / "index.html").write_text(BLOG_INDEX_HTML, encoding="utf-8")
    return tmp_path


@pytest.fixture
def add_post(site_root: Path):
    """Factory writing ``blog/<slug>/index.html`` under the site root."""

    def _add(slug: str, title: str | None = None, **kwargs) -> Path:
        page = site_root / "blog" / slug / "index.html"
        page.parent.mkdir(parents=True, exist_ok=True)
        html = post_html(title or slug.replace("-", " ").title(), **kwargs)
        page.write_text(html, encoding="utf-8")
        return page

    return _add


@pytest.fixture
def config() -> SheetpressConfig:
    return SheetpressConfig(
        retry=RetryPolicy(max_attempts=3, initial_delay=0, multiplier=1, max_delay=0)
    )


@pytest.fixture
def ctx(site_root: Path, config: SheetpressConfig) -> RunContext:
    return RunContext(root=site_root, today=date(2026, 1, 15), config=config)

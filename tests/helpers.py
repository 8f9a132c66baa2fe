"""Site markup builders and in-memory stand-ins for the queue, generator and git."""

from __future__ import annotations

from pathlib import Path

from sheetpress.errors import GenerationError, GitError
from sheetpress.generator import GenerationResult
from sheetpress.tasks.models import CellUpdate, TaskBatch

HEADER = [
    "id",
    "type",
    "slug",
    "title",
    "primary_keyword",
    "secondary_keywords",
    "publish_date",
    "status",
]

HOME_HTML = """\
<!DOCTYPE html>
<html>
<body>
  <header>
    <nav>
      <ul class="header__menu">
          <li><a href="/" class="header__link">Home</a></li>
          <li><a href="/blog/" class="header__link">Blog</a></li>
        </ul>
    </nav>
  </header>
  <section id="blog">
    <div class="blog-section__grid">
          <!-- HOME_BLOG_CARDS:START -->
          <p>placeholder</p>
          <!-- HOME_BLOG_CARDS:END -->
    </div>
  </section>
  <footer>footer stays</footer>
</body>
</html>
"""

BLOG_INDEX_HTML = """\
<!DOCTYPE html>
<html>
<body>
  <main>
    <div class="blog-grid">
          <!-- BLOG_INDEX_CARDS:START -->
          <!-- BLOG_INDEX_CARDS:END -->
    </div>
  </main>
</body>
</html>
"""


def post_html(
    title: str,
    *,
    description: str = "A helpful post.",
    published: str = "2026-01-10",
    modified: str | None = None,
    category: str | None = "Guides",
    read_time: int | None = 5,
) -> str:
    """Render a generated blog page the way the generator lays them out."""
    meta = [
        f"<title>{title} | Coursework Ninja</title>",
        f'<meta name="description" content="{description}">',
        f'<meta property="og:title" content="{title}">',
        f'<meta property="article:published_time" content="{published}">',
    ]
    if modified:
        meta.append(f'<meta property="article:modified_time" content="{modified}">')
    if category:
        meta.append(f'<meta property="article:section" content="{category}">')
    read = f"<span>{read_time} min read</span>" if read_time else ""
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        + "\n".join(meta)
        + "\n</head>\n<body>\n"
        + f'<h1 class="blog-header__title">{title}</h1>\n{read}\n'
        + "</body>\n</html>\n"
    )


class FakeQueue:
    """In-memory TaskQueue recording every write."""

    def __init__(
        self, rows: list[list[str]] | None = None, *, write_error: Exception | None = None
    ) -> None:
        self.rows = rows or []
        self.write_error = write_error
        self.writes: list[list[CellUpdate]] = []

    def read_rows(self) -> list[list[str]]:
        return self.rows

    def write_cells(self, updates: list[CellUpdate]) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(list(updates))

    @property
    def written(self) -> dict[str, str]:
        return {u.range: u.value for batch in self.writes for u in batch}


class FakeGenerator:
    """Writes pages for the slugs it is told to produce."""

    def __init__(
        self,
        root: Path,
        produce: dict[str, str | bytes] | None = None,
        *,
        failures: int = 0,
        retryable: bool = True,
    ) -> None:
        self.root = root
        self.produce = produce or {}
        self.failures = failures
        self.retryable = retryable
        self.calls = 0
        self.checked = False

    def check_environment(self) -> None:
        self.checked = True

    def generate(self, batch: TaskBatch) -> GenerationResult:
        self.calls += 1
        if self.calls <= self.failures:
            raise GenerationError("generator crashed", retryable=self.retryable)
        for task in batch.tasks:
            if task.slug in self.produce:
                page = self.root / "blog" / task.slug / "index.html"
                page.parent.mkdir(parents=True, exist_ok=True)
                content = self.produce[task.slug]
                if isinstance(content, bytes):
                    page.write_bytes(content)
                else:
                    page.write_text(content, encoding="utf-8")
        return GenerationResult(output=f"created {len(self.produce)} page(s)")


class FakeGit:
    """GitRepo stand-in: clean tree, no history, records commits and pushes."""

    def __init__(
        self,
        *,
        dirty: str = "",
        branch: str = "main",
        changes: str = " M index.html",
        push_fails: bool = False,
    ) -> None:
        self._status = [dirty, changes]
        self.branch = branch
        self.push_fails = push_fails
        self.pulled = False
        self.added = False
        self.commits: list[str] = []
        self.pushes: list[tuple[str, str]] = []

    def status_porcelain(self) -> str:
        return self._status.pop(0) if len(self._status) > 1 else self._status[0]

    def current_branch(self) -> str:
        return self.branch

    def pull_rebase(self) -> None:
        self.pulled = True

    def add_all(self) -> None:
        self.added = True

    def commit(self, message: str) -> None:
        self.commits.append(message)

    def push(self, remote: str, branch: str) -> None:
        if self.push_fails:
            raise GitError(["push", remote, branch], 128, "no remote")
        self.pushes.append((remote, branch))

    def last_commit_time(self, rel_path: str) -> int:
        return 0

    def first_added_time(self, rel_path: str) -> int:
        return 0


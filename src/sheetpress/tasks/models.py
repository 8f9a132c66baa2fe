"""Pure data models for queued publishing tasks.

No I/O here. Services import from this module.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(StrEnum):
    """Queue states this pipeline reads or writes."""

    READY = "READY"
    PUBLISHED = "PUBLISHED"
    ERROR = "ERROR"


class ContentType(StrEnum):
    """Closed set of page types the generator knows how to build."""

    BLOG = "blog"
    LANDING = "landing"

    @classmethod
    def parse(cls, raw: str) -> ContentType | None:
        """Resolve a queue ``type`` cell, accepting aliases; None if unknown."""
        key = raw.strip().lower()
        key = _TYPE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def section(self) -> str:
        """Top-level directory holding pages of this type."""
        return self.value


_TYPE_ALIASES: dict[str, str] = {
    "article": "blog",
    "landing-page": "landing",
}

REQUIRED_COLUMNS: tuple[str, ...] = (
    "id",
    "type",
    "slug",
    "title",
    "primary_keyword",
    "secondary_keywords",
    "publish_date",
    "status",
)

OPTIONAL_COLUMNS: tuple[str, ...] = ("tags", "category", "internal_links", "notes")


class Task(BaseModel):
    """One row of the task queue."""

    model_config = ConfigDict(frozen=True)

    row_number: int = Field(serialization_alias="rowNumber")
    id: str = ""
    type: str = ""
    slug: str = ""
    title: str = ""
    primary_keyword: str = ""
    secondary_keywords: str = ""
    publish_date: str = ""
    status: str = ""
    tags: str = ""
    category: str = ""
    internal_links: str = ""
    notes: str = ""

    @property
    def content_type(self) -> ContentType | None:
        return ContentType.parse(self.type)

    def is_actionable(self, as_of: str) -> bool:
        """READY, due on or before ``as_of`` (ISO date), with slug and type set."""
        return (
            self.status == TaskStatus.READY
            and bool(self.publish_date)
            and self.publish_date <= as_of
            and bool(self.slug)
            and bool(self.type)
        )

    def expected_path(self) -> PurePosixPath | None:
        """Repo-relative path the generator must produce, or None for unknown types."""
        content_type = self.content_type
        if content_type is None:
            return None
        return PurePosixPath(content_type.section, self.slug, "index.html")


class TaskBatch(BaseModel):
    """The immutable set of actionable tasks for one run."""

    model_config = ConfigDict(frozen=True)

    today: str
    tasks: tuple[Task, ...] = ()

    def __len__(self) -> int:
        return len(self.tasks)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True)


class CellUpdate(BaseModel):
    """A single-cell write addressed in A1 notation."""

    range: str
    value: str

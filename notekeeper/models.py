from __future__ import annotations
from datetime import datetime, UTC
from typing import Any, Optional
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel

DEFAULT_CATEGORY = "普通"
DEFAULT_PRIORITY = "中"
DEFAULT_STATUS = "已发布"
DRAFT_STATUS = "草稿"

TITLE_MAX = 200
TAGS_MAX = 1000
CATEGORY_MAX = 50
PRIORITY_MAX = 20
STATUS_MAX = 20


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware UTC copy of ``value``; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCTimestamp(TypeDecorator):
    """Stored as naive UTC, loaded back as aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        value = as_utc(value)
        return value.replace(tzinfo=None) if value is not None else None

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        return as_utc(value)


def split_tags(raw: str | None) -> list[str]:
    """Trimmed, non-empty tokens of a comma-delimited tag string, in order."""
    if not raw:
        return []
    return [t.strip() for t in raw.split(",") if t.strip()]


class Note(SQLModel, table=True):
    __tablename__ = "notes"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=TITLE_MAX, index=True)
    content: str
    # tags stay a flat comma-delimited string; tag filters match on it directly
    tags: str = Field(default="", max_length=TAGS_MAX)
    category: str = Field(default=DEFAULT_CATEGORY, max_length=CATEGORY_MAX, index=True)
    priority: str = Field(default=DEFAULT_PRIORITY, max_length=PRIORITY_MAX)
    status: str = Field(default=DEFAULT_STATUS, max_length=STATUS_MAX, index=True)

    is_pinned: bool = Field(default=False, index=True)
    is_favorite: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCTimestamp, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCTimestamp)
    last_viewed_at: Optional[datetime] = Field(default=None, sa_type=UTCTimestamp)

    @property
    def tag_list(self) -> list[str]:
        return split_tags(self.tags)

    @property
    def character_count(self) -> int:
        return len(self.content or "")

    def touch(self) -> None:
        self.updated_at = max(utcnow(), as_utc(self.created_at))

    def mark_viewed(self) -> None:
        self.last_viewed_at = utcnow()

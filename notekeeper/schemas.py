"""Request/response models exposed over HTTP.

Field names are snake_case in Python and camelCase on the wire; input models
accept either spelling.
"""
from __future__ import annotations
import math
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from .models import (
    CATEGORY_MAX,
    DEFAULT_CATEGORY,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    PRIORITY_MAX,
    STATUS_MAX,
    TAGS_MAX,
    TITLE_MAX,
    utcnow,
)

T = TypeVar("T")

PREVIEW_CHARS = 200


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------- input ----------
class NoteWrite(CamelModel):
    """Shared body of create and full-replacement update."""
    title: str = Field(min_length=1, max_length=TITLE_MAX)
    content: str = Field(min_length=1)
    tags: str = Field(default="", max_length=TAGS_MAX)
    category: str = Field(default=DEFAULT_CATEGORY, max_length=CATEGORY_MAX)
    priority: str = Field(default=DEFAULT_PRIORITY, max_length=PRIORITY_MAX)
    status: str = Field(default=DEFAULT_STATUS, max_length=STATUS_MAX)
    is_pinned: bool = False
    is_favorite: bool = False

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class NoteCreate(NoteWrite):
    pass


class NoteUpdate(NoteWrite):
    pass


class NoteImport(NoteWrite):
    """A note restored from an export; timestamps are kept when present."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NoteSearch(CamelModel):
    keyword: Optional[str] = None
    tag: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    is_pinned: Optional[bool] = None
    is_favorite: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)


# ---------- output ----------
class NoteListItem(CamelModel):
    id: int
    title: str
    content: str
    tag_list: list[str]
    category: str
    priority: str
    status: str
    is_pinned: bool
    is_favorite: bool
    created_at: datetime
    updated_at: datetime
    character_count: int

    @computed_field(alias="contentPreview")
    @property
    def content_preview(self) -> str:
        if len(self.content) > PREVIEW_CHARS:
            return self.content[:PREVIEW_CHARS] + "..."
        return self.content


class NoteOut(CamelModel):
    id: int
    title: str
    content: str
    tags: str
    tag_list: list[str]
    category: str
    priority: str
    status: str
    is_pinned: bool
    is_favorite: bool
    created_at: datetime
    updated_at: datetime
    last_viewed_at: Optional[datetime] = None
    character_count: int


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str = ""
    data: Optional[T] = None
    errors: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def ok(cls, data: Any = None, message: str = "操作成功") -> "ApiResponse":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, errors: Optional[list[str]] = None) -> "ApiResponse":
        return cls(success=False, message=message, errors=errors or [])


class PagedResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str = "获取成功"
    data: list[T] = Field(default_factory=list)
    page: int
    page_size: int = Field(ge=1)
    total: int

    @computed_field(alias="totalPages")
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    @computed_field(alias="hasNextPage")
    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @computed_field(alias="hasPreviousPage")
    @property
    def has_previous_page(self) -> bool:
        return self.page > 1


class Statistics(CamelModel):
    total: int
    pinned: int
    favorites: int
    drafts: int
    categories: dict[str, int]
    priorities: dict[str, int]


class PinState(CamelModel):
    is_pinned: bool


class FavoriteState(CamelModel):
    is_favorite: bool


class DeletedCount(CamelModel):
    deleted_count: int

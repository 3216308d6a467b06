"""Filter/sort/paginate over the notes table.

Listings are ordered ``is_pinned DESC, created_at ASC``; the requested
``sort_by``/``sort_order`` has no effect on that order unless
``honor_sort_within_pins`` is set, in which case it applies inside each pin
group.
"""
from __future__ import annotations
from typing import Any

from sqlalchemy import Integer, or_
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement
from sqlmodel import col, select
from sqlmodel.sql.expression import SelectOfScalar

from .models import Note, as_utc
from .schemas import NoteSearch

SORT_COLUMNS = {
    "title": Note.title,
    "updated_at": Note.updated_at,
    "priority": Note.priority,
    "created_at": Note.created_at,
}


class substring_position(FunctionElement):
    """1-based position of a substring, 0 when absent. Case-sensitive."""

    type = Integer()
    name = "substring_position"
    inherit_cache = True


@compiles(substring_position)
def _instr(element, compiler, **kw):
    # SQLite and MySQL; LIKE would ignore case on SQLite
    return "instr(%s)" % compiler.process(element.clauses, **kw)


@compiles(substring_position, "postgresql")
def _strpos(element, compiler, **kw):
    return "strpos(%s)" % compiler.process(element.clauses, **kw)


def contains(column: Any, needle: str) -> Any:
    return substring_position(column, needle) > 0


def filter_criteria(search: NoteSearch) -> list[Any]:
    crit: list[Any] = []
    if search.keyword:
        crit.append(or_(contains(Note.title, search.keyword), contains(Note.content, search.keyword)))
    if search.tag:
        crit.append(contains(Note.tags, search.tag))
    if search.category:
        crit.append(Note.category == search.category)
    if search.priority:
        crit.append(Note.priority == search.priority)
    if search.status:
        crit.append(Note.status == search.status)
    if search.is_pinned is not None:
        crit.append(Note.is_pinned == search.is_pinned)
    if search.is_favorite is not None:
        crit.append(Note.is_favorite == search.is_favorite)
    if search.start_date is not None:
        crit.append(col(Note.created_at) >= as_utc(search.start_date))
    if search.end_date is not None:
        crit.append(col(Note.created_at) <= as_utc(search.end_date))
    return crit


def requested_order(sort_by: str, sort_order: str) -> Any:
    """ORDER BY clause for a sort field/direction; unknown fields sort by created_at."""
    column = col(SORT_COLUMNS.get((sort_by or "").lower(), Note.created_at))
    if (sort_order or "").lower() == "asc":
        return column.asc()
    return column.desc()


def order_clauses(search: NoteSearch, honor_sort_within_pins: bool = False) -> list[Any]:
    clauses = [col(Note.is_pinned).desc()]
    if honor_sort_within_pins:
        clauses.append(requested_order(search.sort_by, search.sort_order))
    clauses.append(col(Note.created_at).asc())
    clauses.append(col(Note.id).asc())
    return clauses


def build_search(search: NoteSearch, honor_sort_within_pins: bool = False) -> SelectOfScalar[Note]:
    stmt = select(Note)
    for c in filter_criteria(search):
        stmt = stmt.where(c)
    return stmt.order_by(*order_clauses(search, honor_sort_within_pins))


def page_offset(page: int, page_size: int) -> int:
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be >= 1")
    return (page - 1) * page_size


def build_quick_search(keyword: str) -> SelectOfScalar[Note]:
    """Title, content or raw tags containing ``keyword``; pinned first, newest edits next."""
    return (
        select(Note)
        .where(or_(contains(Note.title, keyword),
                   contains(Note.content, keyword),
                   contains(Note.tags, keyword)))
        .order_by(col(Note.is_pinned).desc(), col(Note.updated_at).desc(), col(Note.id).desc())
    )

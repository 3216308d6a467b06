from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Sequence

from .config import get_settings
from .db import session_scope
from .models import DRAFT_STATUS, Note, as_utc, split_tags, utcnow
from .queries import build_quick_search, build_search, page_offset
from .repository import NoteRepository
from .schemas import (
    NoteCreate,
    NoteImport,
    NoteListItem,
    NoteOut,
    NoteSearch,
    NoteUpdate,
    PagedResponse,
    Statistics,
)

log = logging.getLogger(__name__)


def to_list_item(note: Note) -> NoteListItem:
    return NoteListItem.model_validate(note)


def to_out(note: Note) -> NoteOut:
    return NoteOut.model_validate(note)


class NoteService:
    """Note operations over an injected repository.

    Lookups by id return ``None`` (or ``False``/0 for deletes) when the note
    does not exist; store errors propagate to the caller.
    """

    def __init__(self, repo: NoteRepository, honor_sort_within_pins: Optional[bool] = None):
        self.repo = repo
        if honor_sort_within_pins is None:
            honor_sort_within_pins = get_settings().honor_sort_within_pins
        self.honor_sort_within_pins = honor_sort_within_pins

    # ---------- listing ----------
    def search_notes(self, search: NoteSearch) -> PagedResponse[NoteListItem]:
        stmt = build_search(search, self.honor_sort_within_pins)
        total = self.repo.count_matching(stmt)
        notes = self.repo.fetch(
            stmt,
            offset=page_offset(search.page, search.page_size),
            limit=search.page_size,
        )
        return PagedResponse[NoteListItem](
            data=[to_list_item(n) for n in notes],
            page=search.page,
            page_size=search.page_size,
            total=total,
        )

    def quick_search(self, keyword: str, limit: int = 10) -> list[NoteListItem]:
        if not keyword:
            return []
        notes = self.repo.fetch(build_quick_search(keyword), limit=max(limit, 1))
        return [to_list_item(n) for n in notes]

    # ---------- single note ----------
    def get_note(self, note_id: int) -> Optional[NoteOut]:
        """Fetch a note and stamp its ``last_viewed_at``."""
        note = self.mark_viewed(note_id)
        return to_out(note) if note is not None else None

    def mark_viewed(self, note_id: int) -> Optional[Note]:
        note = self.repo.get(note_id)
        if note is None:
            return None
        note.mark_viewed()
        self.repo.save(note)
        return note

    def create_note(self, payload: NoteCreate) -> NoteOut:
        now = utcnow()
        note = Note(**payload.model_dump(), created_at=now, updated_at=now)
        self.repo.add(note)
        log.info("created note id=%s", note.id)
        return to_out(note)

    def import_notes(self, payloads: Sequence[NoteImport]) -> int:
        """Insert already validated notes in one commit, keeping their timestamps."""
        now = utcnow()
        notes = []
        for p in payloads:
            created = as_utc(p.created_at) or now
            updated = max(as_utc(p.updated_at) or created, created)
            fields = p.model_dump(exclude={"created_at", "updated_at"})
            notes.append(Note(**fields, created_at=created, updated_at=updated))
        count = self.repo.add_many(notes)
        log.info("imported %d notes", count)
        return count

    def update_note(self, note_id: int, payload: NoteUpdate) -> Optional[NoteOut]:
        note = self.repo.get(note_id)
        if note is None:
            return None
        for field, value in payload.model_dump().items():
            setattr(note, field, value)
        note.touch()
        self.repo.save(note)
        log.info("updated note id=%s", note_id)
        return to_out(note)

    def delete_note(self, note_id: int) -> bool:
        note = self.repo.get(note_id)
        if note is None:
            return False
        self.repo.delete(note)
        log.info("deleted note id=%s", note_id)
        return True

    def delete_notes(self, ids: Iterable[int]) -> int:
        ids = list(ids)
        removed = self.repo.delete_many(ids)
        log.info("batch delete requested=%d removed=%d", len(ids), removed)
        return removed

    def toggle_pin(self, note_id: int) -> Optional[bool]:
        note = self.repo.get(note_id)
        if note is None:
            return None
        note.is_pinned = not note.is_pinned
        note.touch()
        self.repo.save(note)
        return note.is_pinned

    def toggle_favorite(self, note_id: int) -> Optional[bool]:
        note = self.repo.get(note_id)
        if note is None:
            return None
        note.is_favorite = not note.is_favorite
        note.touch()
        self.repo.save(note)
        return note.is_favorite

    # ---------- vocabularies & stats ----------
    def all_tags(self) -> list[str]:
        tags: set[str] = set()
        for raw in self.repo.tag_strings():
            tags.update(split_tags(raw))
        return sorted(tags)

    def all_categories(self) -> list[str]:
        return self.repo.distinct_categories()

    def statistics(self) -> Statistics:
        # independent counts, not one snapshot
        return Statistics(
            total=self.repo.count(),
            pinned=self.repo.count(Note.is_pinned == True),  # noqa: E712
            favorites=self.repo.count(Note.is_favorite == True),  # noqa: E712
            drafts=self.repo.count(Note.status == DRAFT_STATUS),
            categories=dict(self.repo.group_counts(Note.category, by_count_desc=True)),
            priorities=dict(self.repo.group_counts(Note.priority)),
        )


@contextmanager
def note_service() -> Iterator[NoteService]:
    """A service bound to a fresh session scope (CLI and scripts)."""
    with session_scope() as s:
        yield NoteService(NoteRepository(s))

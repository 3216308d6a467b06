"""Persistence access for notes.

``NoteRepository`` wraps a single scoped ``Session``; callers own the session
lifecycle (see ``db.session_scope``). Store errors are not caught here.
"""
from __future__ import annotations
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.sql import Select
from sqlmodel import Session, col, select

from .models import Note


class NoteRepository:
    def __init__(self, session: Session):
        self.session = session

    # ---------- CRUD ----------
    def add(self, note: Note) -> Note:
        self.session.add(note)
        self.session.commit()
        self.session.refresh(note)
        return note

    def add_many(self, notes: Sequence[Note]) -> int:
        """Insert all notes in one commit."""
        self.session.add_all(notes)
        self.session.commit()
        return len(notes)

    def get(self, note_id: int) -> Optional[Note]:
        return self.session.get(Note, note_id)

    def save(self, note: Note) -> Note:
        self.session.add(note)
        self.session.commit()
        self.session.refresh(note)
        return note

    def delete(self, note: Note) -> None:
        self.session.delete(note)
        self.session.commit()

    def delete_many(self, ids: Iterable[int]) -> int:
        wanted = list(set(ids))
        if not wanted:
            return 0
        notes = self.session.exec(select(Note).where(col(Note.id).in_(wanted))).all()
        for note in notes:
            self.session.delete(note)
        self.session.commit()
        return len(notes)

    # ---------- queries ----------
    def list_all(self) -> list[Note]:
        return self.fetch(select(Note).order_by(col(Note.id).asc()))

    def fetch(self, stmt: Select, offset: int = 0, limit: Optional[int] = None) -> list[Note]:
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.exec(stmt).all())

    def count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(Note)
        for c in criteria:
            stmt = stmt.where(c)
        return int(self.session.exec(stmt).one())

    def count_matching(self, stmt: Select) -> int:
        sub = stmt.order_by(None).subquery()
        return int(self.session.exec(select(func.count()).select_from(sub)).one())

    def group_counts(self, column: Any, *, by_count_desc: bool = False) -> list[tuple[str, int]]:
        n = func.count(col(Note.id)).label("n")
        stmt = select(column, n).group_by(column)
        if by_count_desc:
            stmt = stmt.order_by(n.desc())
        return [(key, int(cnt)) for key, cnt in self.session.exec(stmt).all()]

    def tag_strings(self) -> Sequence[str]:
        stmt = select(Note.tags).where(col(Note.tags).is_not(None), Note.tags != "")
        return self.session.exec(stmt).all()

    def distinct_categories(self) -> list[str]:
        stmt = (
            select(Note.category)
            .where(col(Note.category).is_not(None), Note.category != "")
            .distinct()
            .order_by(col(Note.category).asc())
        )
        return list(self.session.exec(stmt).all())

from notekeeper.db import init_db, get_session, reset_engine
from notekeeper.models import Note, DEFAULT_CATEGORY, DEFAULT_PRIORITY, DEFAULT_STATUS


def test_create_note(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTEKEEPER_DB_PATH", str(tmp_path / "smoke.sqlite"))
    reset_engine()
    init_db()

    s = get_session()
    note = Note(title="hello", content="world")
    s.add(note)
    s.commit()
    s.refresh(note)
    s.close()
    assert note.id is not None
    assert note.category == DEFAULT_CATEGORY
    assert note.priority == DEFAULT_PRIORITY
    assert note.status == DEFAULT_STATUS
    assert note.is_pinned is False and note.is_favorite is False
    assert note.last_viewed_at is None
    assert (tmp_path / "smoke.sqlite").exists()

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from notekeeper.db import init_db, reset_engine, session_scope
from notekeeper.models import Note, utcnow
from notekeeper.repository import NoteRepository
from notekeeper.services import NoteService


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTEKEEPER_DB_PATH", str(tmp_path / "notes.sqlite"))
    monkeypatch.delenv("NOTEKEEPER_DATABASE_URL", raising=False)
    monkeypatch.delenv("NOTEKEEPER_HONOR_SORT_WITHIN_PINS", raising=False)
    reset_engine()
    init_db()
    yield
    reset_engine()


@pytest.fixture
def service(db):
    with session_scope() as s:
        yield NoteService(NoteRepository(s))


@pytest.fixture
def seeded(db):
    """Note A (pinned, 工作, two days old) and note B (favorite, 生活, one day old)."""
    now = utcnow()
    a = Note(
        title="测试记事1",
        content="这是第一条测试记事的内容",
        tags="测试,工作",
        category="工作",
        priority="高",
        is_pinned=True,
        created_at=now - timedelta(days=2),
        updated_at=now - timedelta(days=1),
    )
    b = Note(
        title="测试记事2",
        content="这是第二条测试记事的内容，内容比较长一些，用来测试搜索功能",
        tags="测试,生活",
        category="生活",
        priority="中",
        is_favorite=True,
        created_at=now - timedelta(days=1),
        updated_at=now,
    )
    with session_scope() as s:
        s.add(a)
        s.add(b)
        s.flush()
        ids = {"a": a.id, "b": b.id}
    return ids


@pytest.fixture
def client(db):
    from notekeeper.app import create_app

    with TestClient(create_app()) as c:
        yield c

import pytest
from pydantic import ValidationError

from notekeeper.schemas import NoteCreate


def test_create_note_service_and_return_id(service):
    note = service.create_note(NoteCreate(title="hello", content="world", tags="Work, ideas,work"))
    assert note.id is not None
    assert note.title == "hello"
    assert note.content == "world"
    assert note.tags == "Work, ideas,work"
    assert note.tag_list == ["Work", "ideas", "work"]
    assert note.character_count == 5
    assert note.category == "普通"
    assert note.priority == "中"
    assert note.status == "已发布"
    assert note.created_at == note.updated_at
    assert note.last_viewed_at is None


def test_create_accepts_flags_and_camel_case(service):
    payload = NoteCreate.model_validate(
        {"title": "t", "content": "c", "isPinned": True, "isFavorite": True, "category": "灵感"}
    )
    note = service.create_note(payload)
    assert note.is_pinned is True
    assert note.is_favorite is True
    assert note.category == "灵感"


@pytest.mark.parametrize(
    "body",
    [
        {"title": "", "content": "c"},
        {"title": "   ", "content": "c"},
        {"title": "t", "content": ""},
        {"title": "x" * 201, "content": "c"},
        {"title": "t", "content": "c", "tags": "t" * 1001},
        {"title": "t", "content": "c", "category": "c" * 51},
        {"content": "c"},
    ],
)
def test_create_validation(body):
    with pytest.raises(ValidationError):
        NoteCreate.model_validate(body)


def test_get_note_stamps_last_viewed(service):
    created = service.create_note(NoteCreate(title="a", content="b"))
    fetched = service.get_note(created.id)
    assert fetched is not None
    assert fetched.last_viewed_at is not None
    assert fetched.updated_at == created.updated_at

    again = service.get_note(created.id)
    assert again.last_viewed_at >= fetched.last_viewed_at


def test_get_missing_note_returns_none(service):
    assert service.get_note(999) is None


def test_mark_viewed_returns_stamped_note(service):
    created = service.create_note(NoteCreate(title="a", content="b"))
    note = service.mark_viewed(created.id)
    assert note is not None and note.last_viewed_at is not None
    assert service.mark_viewed(999) is None

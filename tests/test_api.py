"""
HTTP tests for the notes API.
"""
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from notekeeper.config import get_settings


def _create(client: TestClient, **fields) -> dict:
    body = {"title": "t", "content": "c", **fields}
    res = client.post("/api/notes", json=body)
    assert res.status_code == 201, res.text
    return res.json()["data"]


class TestNoteCRUD:
    def test_create_returns_envelope_with_camel_case(self, client: TestClient):
        res = client.post("/api/notes", json={"title": "hello", "content": "world", "tags": "a, b"})
        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["message"] == "创建记事成功"
        assert body["errors"] == []
        assert "timestamp" in body
        note = body["data"]
        assert note["id"] > 0
        assert note["tagList"] == ["a", "b"]
        assert note["characterCount"] == 5
        assert note["isPinned"] is False
        assert note["category"] == "普通"
        assert note["lastViewedAt"] is None

    def test_create_validation_error(self, client: TestClient):
        res = client.post("/api/notes", json={"title": "", "content": "c"})
        assert res.status_code == 422
        body = res.json()
        assert body["success"] is False
        assert body["errors"]

        res = client.post("/api/notes", json={"title": "x" * 201, "content": "c"})
        assert res.status_code == 422

    def test_get_stamps_last_viewed(self, client: TestClient):
        created = _create(client)
        res = client.get(f"/api/notes/{created['id']}")
        assert res.status_code == 200
        assert res.json()["data"]["lastViewedAt"] is not None

    def test_get_missing(self, client: TestClient):
        res = client.get("/api/notes/99999")
        assert res.status_code == 404
        body = res.json()
        assert body["success"] is False
        assert "99999" in body["message"]

    def test_update(self, client: TestClient):
        created = _create(client, category="工作")
        res = client.put(
            f"/api/notes/{created['id']}",
            json={"title": "new", "content": "longer content", "status": "草稿", "isFavorite": True},
        )
        assert res.status_code == 200
        note = res.json()["data"]
        assert note["title"] == "new"
        assert note["characterCount"] == len("longer content")
        assert note["status"] == "草稿"
        assert note["category"] == "普通"
        assert note["isFavorite"] is True

        assert client.put("/api/notes/99999", json={"title": "t", "content": "c"}).status_code == 404

    def test_delete(self, client: TestClient):
        created = _create(client)
        res = client.delete(f"/api/notes/{created['id']}")
        assert res.status_code == 200
        assert res.json()["success"] is True
        assert client.get(f"/api/notes/{created['id']}").status_code == 404
        assert client.delete(f"/api/notes/{created['id']}").status_code == 404

    def test_batch_delete(self, client: TestClient):
        ids = [_create(client)["id"] for _ in range(3)]
        res = client.request("DELETE", "/api/notes/batch", json=ids[:2] + [99999])
        assert res.status_code == 200
        assert res.json()["data"] == {"deletedCount": 2}

        res = client.request("DELETE", "/api/notes/batch", json=[])
        assert res.status_code == 400

    def test_toggles(self, client: TestClient):
        created = _create(client)
        res = client.patch(f"/api/notes/{created['id']}/pin")
        assert res.status_code == 200
        assert res.json()["data"] == {"isPinned": True}
        assert client.patch(f"/api/notes/{created['id']}/pin").json()["data"] == {"isPinned": False}

        res = client.patch(f"/api/notes/{created['id']}/favorite")
        assert res.json()["data"] == {"isFavorite": True}
        assert res.json()["message"] == "收藏成功"

        assert client.patch("/api/notes/99999/pin").status_code == 404
        assert client.patch("/api/notes/99999/favorite").status_code == 404


class TestListing:
    def test_paged_response_shape(self, client: TestClient, seeded):
        res = client.get("/api/notes", params={"page": 1, "pageSize": 1})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["page"] == 1
        assert body["pageSize"] == 1
        assert body["total"] == 2
        assert body["totalPages"] == 2
        assert body["hasNextPage"] is True
        assert body["hasPreviousPage"] is False
        assert len(body["data"]) == 1
        assert body["data"][0]["id"] == seeded["a"]
        assert "contentPreview" in body["data"][0]

        second = client.get("/api/notes", params={"page": 2, "pageSize": 1}).json()
        assert [n["id"] for n in second["data"]] == [seeded["b"]]
        assert second["total"] == 2

    def test_filters_via_query(self, client: TestClient, seeded):
        body = client.get("/api/notes", params={"category": "工作"}).json()
        assert [n["id"] for n in body["data"]] == [seeded["a"]]

        body = client.get("/api/notes", params={"isFavorite": "true"}).json()
        assert [n["id"] for n in body["data"]] == [seeded["b"]]

        body = client.get("/api/notes", params={"keyword": "搜索功能", "sortBy": "title", "sortOrder": "asc"}).json()
        assert [n["id"] for n in body["data"]] == [seeded["b"]]

    def test_page_size_zero_rejected(self, client: TestClient):
        assert client.get("/api/notes", params={"pageSize": 0}).status_code == 422
        assert client.get("/api/notes", params={"page": 0}).status_code == 422

    def test_default_page_size_from_settings(self, client: TestClient, monkeypatch):
        monkeypatch.setenv("NOTEKEEPER_DEFAULT_PAGE_SIZE", "7")
        get_settings.cache_clear()
        assert client.get("/api/notes").json()["pageSize"] == 7

    def test_tags_categories_statistics(self, client: TestClient, seeded):
        tags = client.get("/api/notes/tags").json()
        assert tags["data"] == sorted(["测试", "工作", "生活"])

        cats = client.get("/api/notes/categories").json()
        assert cats["data"] == sorted(["工作", "生活"])

        stats = client.get("/api/notes/statistics").json()["data"]
        assert stats["total"] == 2
        assert stats["pinned"] == 1
        assert stats["favorites"] == 1
        assert stats["drafts"] == 0
        assert stats["categories"] == {"工作": 1, "生活": 1}

    def test_quick_search(self, client: TestClient, seeded):
        res = client.get("/api/notes/search", params={"keyword": "测试", "limit": 1})
        assert res.status_code == 200
        assert [n["id"] for n in res.json()["data"]] == [seeded["a"]]

        assert client.get("/api/notes/search").status_code == 400
        assert client.get("/api/notes/search", params={"keyword": ""}).status_code == 400


class TestPlumbing:
    def test_health(self, client: TestClient):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok", "database": True}

    def test_request_id_is_echoed(self, client: TestClient):
        res = client.get("/health", headers={"X-Request-Id": "abc123"})
        assert res.headers["X-Request-Id"] == "abc123"
        assert client.get("/health").headers["X-Request-Id"]

    def test_store_failure_becomes_500(self, client: TestClient):
        boom = OperationalError("SELECT", {}, Exception("disk I/O error"))
        with patch("notekeeper.services.NoteService.statistics", side_effect=boom):
            res = client.get("/api/notes/statistics")
        assert res.status_code == 500
        assert res.json()["success"] is False

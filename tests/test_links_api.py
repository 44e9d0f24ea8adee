import csv
import io
from datetime import datetime

from fastapi.testclient import TestClient

from brevly_app.dependencies import get_object_storage


def create(client: TestClient, shortened_url: str, original_url: str = "https://example.com"):
    return client.post(
        "/links",
        json={"originalUrl": original_url, "shortenedUrl": shortened_url},
    )


class TestCreateLink:
    """POST /links"""

    def test_create_link(self, client: TestClient):
        response = create(client, "example")
        assert response.status_code == 201

        data = response.json()
        assert set(data) == {"id", "originalUrl", "shortenedUrl", "accessCount", "createdAt"}
        assert data["originalUrl"] == "https://example.com"
        assert data["shortenedUrl"] == "example"
        assert data["accessCount"] == 0
        assert datetime.fromisoformat(data["createdAt"]).tzinfo is not None

    def test_duplicate_shortened_url(self, client: TestClient):
        create(client, "example")

        response = create(client, "example", original_url="https://other.example.org")
        assert response.status_code == 409
        assert response.json() == {"message": "Shortened URL already exists"}

    def test_invalid_original_url(self, client: TestClient):
        response = create(client, "example", original_url="not-a-valid-url")
        assert response.status_code == 422
        assert response.json()["message"] == "Validation error"

    def test_shortened_url_too_short(self, client: TestClient):
        assert create(client, "ab").status_code == 422

    def test_shortened_url_too_long(self, client: TestClient):
        assert create(client, "abcdefghijk").status_code == 422

    def test_shortened_url_bad_characters(self, client: TestClient):
        assert create(client, "has space").status_code == 422
        assert create(client, "ação").status_code == 422

    def test_export_is_reserved(self, client: TestClient):
        assert create(client, "export").status_code == 422
        assert client.get("/links").json()["links"] == []

    def test_shortened_url_allows_dash_and_underscore(self, client: TestClient):
        assert create(client, "a-b_C9").status_code == 201


class TestGetOriginalUrl:
    """GET /links/{shortenedUrl}"""

    def test_get_original_url(self, client: TestClient):
        create(client, "docs", original_url="https://docs.python.org/3/")

        response = client.get("/links/docs")
        assert response.status_code == 200
        assert response.json() == {"originalUrl": "https://docs.python.org/3/"}

    def test_get_nonexistent_link(self, client: TestClient):
        response = client.get("/links/missing")
        assert response.status_code == 404
        assert response.json() == {"message": "Link not found"}


class TestUpdateLink:
    """PATCH /links/{shortenedUrl}"""

    def test_update_original_url(self, client: TestClient):
        create(client, "abc")

        response = client.patch("/links/abc", json={"originalUrl": "https://new.example.com"})
        assert response.status_code == 200
        assert response.json()["originalUrl"] == "https://new.example.com"
        assert response.json()["shortenedUrl"] == "abc"

    def test_rename_shortened_url(self, client: TestClient):
        created = create(client, "abc").json()

        response = client.patch("/links/abc", json={"shortenedUrl": "xyz"})
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]
        assert client.get("/links/abc").status_code == 404
        assert client.get("/links/xyz").status_code == 200

    def test_rename_to_taken_key(self, client: TestClient):
        create(client, "first", original_url="https://one.example.com")
        create(client, "second", original_url="https://two.example.com")

        response = client.patch("/links/first", json={"shortenedUrl": "second"})
        assert response.status_code == 409
        assert client.get("/links/first").json() == {"originalUrl": "https://one.example.com"}
        assert client.get("/links/second").json() == {"originalUrl": "https://two.example.com"}

    def test_update_requires_a_field(self, client: TestClient):
        create(client, "abc")

        response = client.patch("/links/abc", json={})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid data for link update."}

    def test_update_rejects_bad_shortened_url(self, client: TestClient):
        create(client, "abc")

        for bad_key in ("x", "has space", "export"):
            response = client.patch("/links/abc", json={"shortenedUrl": bad_key})
            assert response.status_code == 400
            assert response.json() == {"message": "Invalid data for link update."}
        assert client.get("/links/abc").status_code == 200

    def test_update_rejects_bad_original_url(self, client: TestClient):
        create(client, "abc")

        response = client.patch("/links/abc", json={"originalUrl": "not-a-url"})
        assert response.status_code == 400

    def test_update_nonexistent_link(self, client: TestClient):
        response = client.patch("/links/missing", json={"originalUrl": "https://example.com"})
        assert response.status_code == 404


class TestAccessCount:
    """PATCH /links/{shortenedUrl}/access"""

    def test_access_returns_original_url(self, client: TestClient):
        assert create(client, "ghub", original_url="https://github.com/").status_code == 201

        response = client.patch("/links/ghub/access")
        assert response.status_code == 200
        assert response.text == "https://github.com/"

    def test_access_increments_counter(self, client: TestClient):
        assert create(client, "ghub", original_url="https://github.com/").status_code == 201

        for _ in range(3):
            assert client.patch("/links/ghub/access").status_code == 200

        links = client.get("/links").json()["links"]
        assert links[0]["accessCount"] == 3

    def test_access_nonexistent_link(self, client: TestClient):
        response = client.patch("/links/missing/access")
        assert response.status_code == 404
        assert response.json() == {"message": "Link not found"}


class TestDeleteLink:
    """DELETE /links/{shortenedUrl}"""

    def test_delete_link(self, client: TestClient):
        create(client, "gone")

        response = client.delete("/links/gone")
        assert response.status_code == 204
        assert client.get("/links/gone").status_code == 404

    def test_delete_twice(self, client: TestClient):
        create(client, "gone")
        client.delete("/links/gone")

        response = client.delete("/links/gone")
        assert response.status_code == 404


class TestListLinks:
    """GET /links"""

    def test_empty_list(self, client: TestClient):
        response = client.get("/links")
        assert response.status_code == 200
        assert response.json() == {"links": []}

    def test_cursor_pagination(self, client: TestClient):
        for i in range(5):
            create(client, f"page{i}")

        first = client.get("/links", params={"limit": 2}).json()
        assert len(first["links"]) == 2
        assert "nextCursor" in first

        second = client.get("/links", params={"limit": 2, "cursor": first["nextCursor"]}).json()
        third = client.get("/links", params={"limit": 2, "cursor": second["nextCursor"]}).json()
        assert len(third["links"]) == 1
        assert "nextCursor" not in third

        keys = [link["shortenedUrl"] for page in (first, second, third) for link in page["links"]]
        assert sorted(keys) == [f"page{i}" for i in range(5)]

    def test_invalid_limit(self, client: TestClient):
        assert client.get("/links", params={"limit": 0}).status_code == 422


class TestExportLinks:
    """GET /links/export"""

    def test_export_links(self, client: TestClient, object_storage):
        for i in range(3):
            create(client, f"short{i}", original_url=f"https://example.com/{i}")

        response = client.get("/links/export")
        assert response.status_code == 200

        report_url = response.json()["reportUrl"]
        assert report_url.startswith("https://cdn.test/downloads/")
        assert report_url.endswith(".csv")

        (key,) = object_storage.objects
        assert object_storage.content_types[key] == "text/csv"

        rows = list(csv.reader(io.StringIO(object_storage.objects[key].decode("utf-8"))))
        assert rows[0] == ["Original URL", "Shortened URL", "Access Count", "Created At"]
        assert [row[1] for row in rows[1:]] == ["short0", "short1", "short2"]

    def test_export_route_not_shadowed_by_lookup(self, client: TestClient):
        # "export" matches the key pattern, the export route must still win
        response = client.get("/links/export")
        assert response.status_code == 200
        assert "reportUrl" in response.json()

    def test_export_without_storage(self, client: TestClient):
        create(client, "abc123")
        client.app.dependency_overrides[get_object_storage] = lambda: None

        response = client.get("/links/export")
        assert response.status_code == 500
        assert response.json() == {"message": "Failed to export links"}


class TestRoot:

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

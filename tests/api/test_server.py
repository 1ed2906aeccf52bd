#!/usr/bin/env python3
"""
End-to-end tests for the synthesized HTTP endpoints.
"""

import pytest


@pytest.fixture
def widgets(client):
    """Create three widgets through the API; newest last."""
    created = []
    for name, status, price in [("Gear", "active", 10), ("Sprocket", "inactive", 25), ("Gasket", "active", 40)]:
        response = client.post("/widgets", json={"name": name, "status": status, "price": price})
        assert response.status_code == 201
        created.append(response.json())
    return created


class TestHealthAndManifest:
    """Test service endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "apis": ["widgets"]}

    def test_manifest(self, client):
        body = client.get("/_manifest").json()
        assert body["apis"][0]["name"] == "widgets"
        assert body["apis"][0]["searchableFields"] == ["name", "status"]
        assert len(body["routes"][0]["endpoints"]) == 5

    def test_unknown_route(self, client):
        response = client.get("/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"code": "NOT_FOUND", "message": "The requested endpoint does not exist"}

    def test_unsupported_method(self, client):
        response = client.put("/widgets/abc", json={"name": "x"})
        assert response.status_code == 405
        assert response.json()["code"] == "METHOD_NOT_ALLOWED"


class TestCreate:
    """Test POST /widgets."""

    def test_create(self, client):
        response = client.post("/widgets", json={"name": "Gear", "tags": ["metal"]})
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Gear"
        assert body["tags"] == ["metal"]
        assert body["id"]
        assert body["createdAt"] == body["updatedAt"]
        assert response.headers["location"] == f"http://testserver/widgets/{body['id']}"

    def test_client_supplied_id_ignored(self, client):
        body = client.post("/widgets", json={"id": "mine", "name": "Gear"}).json()
        assert body["id"] != "mine"

    def test_invalid_json_is_400(self, client):
        response = client.post(
            "/widgets", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "BAD_REQUEST"
        assert body["message"] == "Invalid JSON in request body"

    def test_non_object_body_is_400(self, client):
        response = client.post("/widgets", json=[{"name": "Gear"}])
        assert response.status_code == 400
        assert response.json()["message"] == "Request body must be a JSON object"

    def test_schema_violation_is_422(self, client):
        response = client.post("/widgets", json={"status": "archived", "color": "red"})
        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["message"] == "The request contains invalid data"
        fields = {d["field"]: d["message"] for d in body["details"]}
        assert fields["name"] == "is required"
        assert fields["color"] == "is not allowed (additional property)"
        assert fields["status"] == "must be one of: active, inactive"
        assert client.get("/widgets").json()["total"] == 0


class TestGetUpdateDelete:
    """Test item endpoints."""

    def test_get(self, client, widgets):
        widget = widgets[0]
        response = client.get(f"/widgets/{widget['id']}")
        assert response.status_code == 200
        assert response.json() == widget

    def test_get_missing(self, client):
        response = client.get("/widgets/missing")
        assert response.status_code == 404
        assert response.json() == {"code": "NOT_FOUND", "message": "Widget not found"}

    def test_patch_deep_merges(self, client):
        created = client.post(
            "/widgets", json={"name": "Gear", "dimensions": {"width": 1, "height": 2}, "tags": ["a", "b"]}
        ).json()
        response = client.patch(
            f"/widgets/{created['id']}",
            json={"id": "other", "dimensions": {"width": 5}, "tags": ["c"]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == created["id"]
        assert body["dimensions"] == {"width": 5, "height": 2}
        assert body["tags"] == ["c"]
        assert body["createdAt"] == created["createdAt"]
        assert body["updatedAt"] > created["updatedAt"]

    def test_patch_validation(self, client, widgets):
        response = client.patch(f"/widgets/{widgets[0]['id']}", json={"price": "free"})
        assert response.status_code == 422
        assert response.json()["details"][0]["field"] == "price"

    def test_patch_missing(self, client):
        response = client.patch("/widgets/missing", json={"name": "x"})
        assert response.status_code == 404

    def test_delete(self, client, widgets):
        widget_id = widgets[0]["id"]
        response = client.delete(f"/widgets/{widget_id}")
        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"/widgets/{widget_id}").status_code == 404
        assert client.delete(f"/widgets/{widget_id}").status_code == 404


class TestList:
    """Test GET /widgets with search and pagination."""

    def test_list_all(self, client, widgets):
        body = client.get("/widgets").json()
        assert body["total"] == 3
        assert body["limit"] == 25
        assert body["offset"] == 0
        assert body["hasNext"] is False
        assert {w["id"] for w in body["items"]} == {w["id"] for w in widgets}

    def test_pagination(self, client, widgets):
        first = client.get("/widgets", params={"limit": 2}).json()
        assert len(first["items"]) == 2
        assert first["hasNext"] is True

        second = client.get("/widgets", params={"limit": 2, "offset": 2}).json()
        assert len(second["items"]) == 1
        assert second["hasNext"] is False

    def test_limit_clamped(self, client, widgets):
        assert client.get("/widgets", params={"limit": 1000}).json()["limit"] == 100

    def test_q_field_and_comparison(self, client, widgets):
        body = client.get("/widgets", params={"q": "status:active price:>=20"}).json()
        assert [w["name"] for w in body["items"]] == ["Gasket"]

    def test_q_full_text_uses_searchable_fields(self, client, widgets):
        body = client.get("/widgets", params={"q": "gas*"}).json()
        assert [w["name"] for w in body["items"]] == ["Gasket"]

    def test_q_in_and_exclusion(self, client, widgets):
        body = client.get("/widgets", params={"q": "-name:Gear,Gasket"}).json()
        assert [w["name"] for w in body["items"]] == ["Sprocket"]

    def test_legacy_search(self, client, widgets):
        body = client.get("/widgets", params={"search": "ROCK"}).json()
        assert [w["name"] for w in body["items"]] == ["Sprocket"]

    def test_plain_filter(self, client, widgets):
        body = client.get("/widgets", params={"status": "inactive"}).json()
        assert body["total"] == 1

    def test_unparseable_terms_do_not_fail(self, client, widgets):
        response = client.get("/widgets", params={"q": "a..b:x"})
        assert response.status_code == 200
        assert response.json()["total"] == 3

    def test_no_match(self, client, widgets):
        body = client.get("/widgets", params={"q": "name:Nothing"}).json()
        assert body == {"items": [], "total": 0, "limit": 25, "offset": 0, "hasNext": False}

    def test_legacy_search_ignored_when_q_present(self, client, widgets):
        body = client.get("/widgets", params={"q": "name:Gear", "search": "nomatch"}).json()
        assert [w["name"] for w in body["items"]] == ["Gear"]


class TestWidgetLifecycle:
    """Create, find, update and delete a single widget."""

    def test_single_widget_flow(self, client):
        created = client.post("/widgets", json={"name": "Foo", "status": "active"})
        assert created.status_code == 201
        widget_id = created.json()["id"]

        found = client.get("/widgets", params={"q": "name:Foo"}).json()
        assert found["total"] == 1
        assert found["items"][0]["id"] == widget_id

        updated = client.patch(f"/widgets/{widget_id}", json={"status": "inactive"}).json()
        assert updated["status"] == "inactive"
        assert client.get("/widgets", params={"q": "status:active"}).json()["total"] == 0

        assert client.delete(f"/widgets/{widget_id}").status_code == 204
        assert client.get("/widgets", params={"q": "name:Foo"}).json()["total"] == 0

    def test_format_violation_is_422(self, client):
        response = client.post("/widgets", json={"name": "Foo", "createdAt": "not-a-date"})
        assert response.status_code == 422
        assert response.json()["details"] == [{
            "field": "createdAt",
            "message": 'must match format "date-time"',
            "value": "not-a-date",
        }]

"""API tests using FastAPI TestClient."""
import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="module")
def client(tmp_path_factory):
    from curriculum_content.core import config
    from curriculum_content.container import get_services
    from curriculum_content.main import app
    from curriculum_content.persistence.db import init_db

    original = config.DATABASE_PATH
    config.DATABASE_PATH = str(tmp_path_factory.mktemp("api") / "content.db")
    get_services.cache_clear()
    init_db()
    yield TestClient(app)
    config.DATABASE_PATH = original
    get_services.cache_clear()


@pytest.fixture(scope="module")
def admin(client):
    login = client.post("/auth/login", json={"username": "admin", "password": "admin"})
    data = login.json()
    return {"id": data["user"]["id"], "headers": {"Authorization": f"Bearer {data['token']}"}}


@pytest.fixture(scope="module")
def auth_headers(admin):
    return admin["headers"]


def new_content(client, headers, **overrides):
    body = {
        "title": "Photosynthesis",
        "key_stage": "KS3",
        "subject": "Science",
        "topics": ["plants", "energy"],
        "initial_variant": {
            "learning_style": "reading_writing",
            "body": "Plants turn light into chemical energy. Leaves hold chlorophyll.",
        },
    }
    body.update(overrides)
    resp = client.post("/content/", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ------------------------------------------------------------------
# Health & auth
# ------------------------------------------------------------------
def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Request-ID"]


def test_login_success(client):
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin"})
    assert resp.status_code == 200
    data = resp.json()
    assert "token" in data
    assert data["user"]["username"] == "admin"


def test_login_bad_password(client):
    resp = client.post("/auth/login", json={"username": "admin", "password": "wrongpassword"})
    assert resp.status_code == 401


def test_invalid_token_is_rejected(client):
    resp = client.patch("/content/anything", json={"title": "x"}, headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert client.get("/auth/profile").status_code == 404


def test_mutations_need_a_token(client):
    resp = client.post("/content/", json={"title": "x", "key_stage": "KS1", "subject": "Music",
                                          "initial_variant": {"learning_style": "visual", "body": "x"}})
    assert resp.status_code == 401


# ------------------------------------------------------------------
# Content CRUD and ledger
# ------------------------------------------------------------------
def test_create_and_get_content(client, auth_headers):
    created = new_content(client, auth_headers)
    assert created["metadata"]["status"] == "draft"
    assert created["metadata"]["version"] == 1
    assert created["default_variant_id"] == created["variants"][0]["id"]

    fetched = client.get(f"/content/{created['id']}").json()
    assert fetched["metadata"] == created["metadata"]


def test_update_creates_history(client, auth_headers):
    content_id = new_content(client, auth_headers)["id"]
    resp = client.patch(
        f"/content/{content_id}",
        json={"title": "Photosynthesis explained", "change_note": "Clearer title"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["metadata"]["version"] == 2

    history = client.get(f"/content/{content_id}/history").json()
    assert [r["change_type"] for r in history] == ["create", "update"]
    assert history[1]["description"] == "Clearer title"

    record = client.get(f"/changes/{history[1]['id']}").json()
    assert record == history[1]


def test_invalid_metadata_is_422(client, auth_headers):
    resp = client.post(
        "/content/",
        json={"title": "x", "key_stage": "KS9", "subject": "Science",
              "initial_variant": {"learning_style": "visual", "body": "x"}},
        headers=auth_headers,
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"


def test_unknown_content_is_404(client):
    assert client.get("/content/does-not-exist").status_code == 404


# ------------------------------------------------------------------
# Workflow
# ------------------------------------------------------------------
def test_status_transition_draft_to_review(client, auth_headers):
    content_id = new_content(client, auth_headers)["id"]
    resp = client.post(f"/content/{content_id}/status", json={"new_status": "review"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "review"


def test_skipping_review_is_409(client, auth_headers):
    content_id = new_content(client, auth_headers)["id"]
    resp = client.post(f"/content/{content_id}/status", json={"new_status": "published"}, headers=auth_headers)
    assert resp.status_code == 409


def test_rejection_without_comment_is_400(client, auth_headers):
    content_id = new_content(client, auth_headers)["id"]
    client.post(f"/content/{content_id}/status", json={"new_status": "review"}, headers=auth_headers)
    resp = client.post(f"/content/{content_id}/status", json={"new_status": "rejected"}, headers=auth_headers)
    assert resp.status_code == 400
    resp = client.post(
        f"/content/{content_id}/status",
        json={"new_status": "rejected", "comment": "Needs a diagram"},
        headers=auth_headers,
    )
    assert resp.status_code == 200


def test_allowed_transitions(client, auth_headers):
    content_id = new_content(client, auth_headers)["id"]
    rules = client.get(f"/content/{content_id}/transitions", headers=auth_headers).json()
    assert rules == [{"from_status": "draft", "to_status": "review", "min_level": "edit", "comment_required": False}]


def test_delete_published_is_409_then_archive_and_delete(client, auth_headers):
    content_id = new_content(client, auth_headers)["id"]
    for target in ("review", "approved", "published"):
        client.post(f"/content/{content_id}/status", json={"new_status": target}, headers=auth_headers)

    assert client.delete(f"/content/{content_id}", headers=auth_headers).status_code == 409
    client.post(f"/content/{content_id}/status", json={"new_status": "archived"}, headers=auth_headers)
    assert client.delete(f"/content/{content_id}", headers=auth_headers).status_code == 204
    assert client.get(f"/content/{content_id}").status_code == 404
    assert client.get(f"/content/{content_id}/history").json()[-1]["change_type"] == "delete"


# ------------------------------------------------------------------
# Permissions
# ------------------------------------------------------------------
def test_grant_and_check_permission(client, auth_headers):
    content_id = new_content(client, auth_headers)["id"]
    resp = client.post(
        "/permissions/", json={"user_id": "teacher-1", "role": "editor", "subject": "Science"},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["level"] == "edit"

    check = client.get(f"/permissions/users/teacher-1/content/{content_id}", params={"required": "edit"})
    assert check.json() == {"allowed": True}
    check = client.get(f"/permissions/users/teacher-1/content/{content_id}", params={"required": "approve"})
    assert check.json() == {"allowed": False}

    grants = client.get("/permissions/users/teacher-1").json()
    assert client.delete(f"/permissions/{grants[0]['id']}", headers=auth_headers).status_code == 204
    assert client.get("/permissions/users/teacher-1").json() == []


def test_grant_with_two_scopes_is_422(client, auth_headers):
    resp = client.post(
        "/permissions/",
        json={"user_id": "teacher-2", "level": "view", "subject": "Science", "key_stage": "KS3"},
        headers=auth_headers,
    )
    assert resp.status_code == 422


# ------------------------------------------------------------------
# Variants
# ------------------------------------------------------------------
def test_adaptation_endpoint(client, auth_headers):
    content_id = new_content(client, auth_headers)["id"]
    resp = client.post(
        f"/content/{content_id}/adaptations",
        json={"learning_styles": ["visual", "kinesthetic"]},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    outcomes = resp.json()
    assert [o["learning_style"] for o in outcomes] == ["visual", "kinesthetic"]
    assert all(o["ok"] for o in outcomes)

    variant = client.get(f"/content/{content_id}/variant", params={"learning_style": "visual"}).json()
    assert variant["learning_style"] == "visual"
    assert variant["body"].startswith("## Visual summary")


def test_removing_default_variant_without_replacement_is_409(client, auth_headers):
    content = new_content(client, auth_headers)
    resp = client.delete(f"/content/{content['id']}/variants/{content['default_variant_id']}", headers=auth_headers)
    assert resp.status_code == 409


# ------------------------------------------------------------------
# Search
# ------------------------------------------------------------------
def test_search(client, auth_headers):
    for title in ("Volcanoes", "Earthquakes"):
        new_content(client, auth_headers, title=title, subject="Geography", key_stage="KS2")
    resp = client.post(
        "/content/search",
        json={"key_stage": ["KS2"], "subject": ["Geography"], "page_size": 1, "sort_by": "title", "descending": False},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_results"] == 2
    assert [m["title"] for m in data["results"]] == ["Earthquakes"]


def test_search_page_size_over_limit_is_422(client):
    resp = client.post("/content/search", json={"page_size": 1000})
    assert resp.status_code == 422


# ------------------------------------------------------------------
# Units
# ------------------------------------------------------------------
def test_unit_ordering(client, auth_headers):
    ids = [new_content(client, auth_headers, title=t)["id"] for t in ("A", "B", "C")]
    unit = client.post(
        "/units/", json={"title": "Plants", "key_stage": "KS3", "subject": "Science"}, headers=auth_headers,
    ).json()
    for content_id in ids:
        client.post(f"/units/{unit['id']}/content", json={"content_id": content_id}, headers=auth_headers)

    resp = client.put(f"/units/{unit['id']}/order", json={"content_ids": [ids[1], ids[0], ids[2]]},
                      headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["content_ids"] == [ids[1], ids[0], ids[2]]

    resp = client.put(f"/units/{unit['id']}/order", json={"content_ids": ids[:2]}, headers=auth_headers)
    assert resp.status_code == 400
    fetched = client.get(f"/units/{unit['id']}").json()
    assert fetched["content_ids"] == [ids[1], ids[0], ids[2]]
    assert fetched["integrity_warnings"] == []
